"""Culprit aggregation over a build's lineage.

Works out who is to blame for a build: the authors of its own changes, the
culprits of a broken predecessor while the build is still running, and,
when enabled, the committers of upstream builds that changed since the
last successful build.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from buildblame.changes.models import (
    BuildRecord,
    BuildResult,
    ChangeEntry,
    ChangeLogSet,
    CulpritIdState,
    Identity,
)
from buildblame.changes.protocols import (
    BuildHistoryProvider,
    ChangeSetSource,
    DependencyChangeIndex,
    IdentityResolver,
)
from buildblame.config.settings import CulpritConfig
from buildblame.exceptions import (
    AuthorResolutionError,
    BuildBlameError,
    IdentityResolutionError,
    error_context,
)

logger = structlog.get_logger()


class CulpritAggregator:
    """Compute culprit sets and participation for builds.

    Holds no mutable state: every call re-derives its answer from the
    collaborators, so concurrent callers need no locking.
    """

    def __init__(
        self,
        history: BuildHistoryProvider,
        change_sets: ChangeSetSource,
        identities: IdentityResolver,
        dependencies: DependencyChangeIndex | None = None,
        config: CulpritConfig | None = None,
    ) -> None:
        self._history = history
        self._change_sets = change_sets
        self._identities = identities
        self._dependencies = dependencies
        self._config = config or CulpritConfig()
        logger.info(
            "culprit_aggregator.initialized",
            upstream_culprits=self._config.upstream_culprits,
            dependency_index=dependencies is not None,
        )

    @property
    def config(self) -> CulpritConfig:
        return self._config

    # -- culprits -----------------------------------------------------------

    def compute_culprits(self, build: BuildRecord) -> set[Identity]:
        """Everyone who committed since the last non-broken build, up to ``build``.

        Always includes the authors of ``build``'s own changes. While the
        build is running and the previous completed build is broken, that
        build's culprits are inherited too. A persisted culprit id list wins
        over all of this.
        """
        if build.culprit_id_state != CulpritIdState.UNSET:
            return self._resolve_persisted(build)

        culprits: set[Identity] = set()
        previous = self._history.previous_completed_build(build)

        # Only inherit while still building. Completed builds from before
        # culprit ids were persisted would otherwise recurse through history.
        if previous is not None and self._history.is_in_progress(build):
            previous_result = self._history.result_severity(previous)
            if previous_result is not None and previous_result.is_worse_than(BuildResult.SUCCESS):
                culprits.update(self.compute_culprits(previous))

        culprits.update(self._authors(build, self._change_sets.change_sets(build)))

        if self._config.upstream_culprits and previous is not None:
            culprits.update(self._upstream_authors(previous))

        return culprits

    def culprit_ids(self, build: BuildRecord) -> frozenset[str]:
        """Culprit ids of ``build`` in the form the history store persists."""
        return frozenset(identity.id for identity in self.compute_culprits(build))

    # -- participation ------------------------------------------------------

    def has_participant(self, build: BuildRecord, identity: Identity) -> bool:
        """True if ``identity`` authored a change in this build's own change sets."""
        for change_set in self._change_sets.change_sets(build):
            for entry in change_set.entries:
                author = self._entry_author(build, entry)
                if author is not None and author == identity:
                    return True
        return False

    # -- internals ----------------------------------------------------------

    def _resolve_persisted(self, build: BuildRecord) -> set[Identity]:
        resolved: set[Identity] = set()
        for user_id in build.culprit_ids or ():
            try:
                with error_context(IdentityResolutionError):
                    resolved.add(self._identities.resolve(user_id))
            except BuildBlameError as exc:
                logger.warning(
                    "culprit_aggregator.culprit_id_unresolved",
                    user_id=user_id,
                    job=build.job,
                    build=build.display_name,
                    error=exc.detail,
                )
                resolved.add(Identity.unresolved(user_id))
        return resolved

    def _upstream_authors(self, previous: BuildRecord) -> set[Identity]:
        if self._dependencies is None or not previous.supports_dependency_tracking:
            return set()
        if self._history.previous_not_failed_build(previous) is None:
            return set()
        last_success = self._history.previous_successful_build(previous)
        changes = self._dependencies.changes_between(last_success, previous)
        authors: set[Identity] = set()
        for change in changes.values():
            for upstream in change.builds:
                authors.update(self._authors(upstream, self._change_sets.change_sets(upstream)))
        if authors:
            logger.debug(
                "culprit_aggregator.upstream_culprits_added",
                job=previous.job,
                build=previous.display_name,
                projects=sorted(changes),
                count=len(authors),
            )
        return authors

    def _authors(
        self,
        build: BuildRecord,
        change_sets: Iterable[ChangeLogSet],
    ) -> set[Identity]:
        authors: set[Identity] = set()
        for change_set in change_sets:
            for entry in change_set.entries:
                author = self._entry_author(build, entry)
                if author is not None:
                    authors.add(author)
        return authors

    def _entry_author(self, build: BuildRecord, entry: ChangeEntry) -> Identity | None:
        try:
            with error_context(AuthorResolutionError):
                return entry.get_author()
        except BuildBlameError as exc:
            logger.info(
                "culprit_aggregator.author_unresolved",
                commit_id=entry.commit_id,
                job=build.job,
                build=build.display_name,
                error=exc.detail,
            )
            return None
