"""Upstream dependency changes between two downstream builds."""

from __future__ import annotations

import structlog

from buildblame.changes.history import BuildHistory
from buildblame.changes.models import BuildRecord, DependencyChange

logger = structlog.get_logger()


class UpstreamDependencyIndex:
    """Derives dependency changes from the upstream build numbers each build consumed.

    For every upstream job both builds consumed, if the newer build picked up
    a later upstream build, the upstream builds in between are reported.
    """

    def __init__(self, history: BuildHistory) -> None:
        self._history = history

    def changes_between(
        self,
        from_build: BuildRecord | None,
        to_build: BuildRecord,
    ) -> dict[str, DependencyChange]:
        if from_build is None:
            return {}
        changes: dict[str, DependencyChange] = {}
        for project, to_number in to_build.upstream_builds.items():
            from_number = from_build.upstream_builds.get(project)
            if from_number is None or from_number >= to_number:
                continue
            changes[project] = DependencyChange(
                project=project,
                from_number=from_number,
                to_number=to_number,
                builds=self._history.builds_in_range(project, from_number, to_number),
            )
        logger.debug(
            "dependency_index.changes_computed",
            job=to_build.job,
            from_number=from_build.number,
            to_number=to_build.number,
            projects=sorted(changes),
        )
        return changes
