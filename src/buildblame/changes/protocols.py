"""Collaborator contracts consumed by the culprit engine."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from buildblame.changes.models import (
    BuildRecord,
    BuildResult,
    ChangeLogSet,
    DependencyChange,
    Identity,
)


@runtime_checkable
class BuildHistoryProvider(Protocol):
    """Navigation over a job's build history."""

    def previous_completed_build(self, build: BuildRecord) -> BuildRecord | None: ...

    def previous_not_failed_build(self, build: BuildRecord) -> BuildRecord | None: ...

    def previous_successful_build(self, build: BuildRecord) -> BuildRecord | None: ...

    def is_in_progress(self, build: BuildRecord) -> bool: ...

    def result_severity(self, build: BuildRecord) -> BuildResult | None: ...


@runtime_checkable
class ChangeSetSource(Protocol):
    """Ordered change sets attached to a build."""

    def change_sets(self, build: BuildRecord) -> Sequence[ChangeLogSet]: ...


@runtime_checkable
class IdentityResolver(Protocol):
    """Maps a stored user id to an identity handle."""

    def resolve(self, user_id: str) -> Identity: ...


@runtime_checkable
class DependencyChangeIndex(Protocol):
    """Upstream changes between two builds of the same downstream job."""

    def changes_between(
        self,
        from_build: BuildRecord | None,
        to_build: BuildRecord,
    ) -> dict[str, DependencyChange]: ...
