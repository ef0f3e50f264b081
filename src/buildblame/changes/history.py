"""In-memory build history.

Keeps an append-only list of builds per job and answers the predecessor
lookups the culprit engine needs. Also serves as the change-set source for
the builds it stores.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

import structlog

from buildblame.changes.models import (
    BuildKind,
    BuildRecord,
    BuildResult,
    BuildState,
    ChangeLogSet,
)
from buildblame.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()


class BuildHistory:
    """Append-only build history keyed by job name.

    Build numbers strictly increase within a job, so every predecessor chain
    is finite and acyclic.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, list[BuildRecord]] = {}
        logger.info("build_history.initialized")

    # -- Recording ----------------------------------------------------------

    def record_build(
        self,
        job: str,
        number: int | None = None,
        kind: BuildKind = BuildKind.FREESTYLE,
        change_sets: list[ChangeLogSet] | None = None,
        upstream_builds: dict[str, int] | None = None,
    ) -> BuildRecord:
        """Start a new in-progress build at the end of ``job``'s history."""
        builds = self._jobs.setdefault(job, [])
        last = builds[-1].number if builds else 0
        if number is None:
            number = last + 1
        if number < 1:
            raise ConflictError(
                f"Build number {number} for job {job!r} must be at least 1",
                extra={"job": job, "number": number},
            )
        if number <= last:
            raise ConflictError(
                f"Build number {number} for job {job!r} must be greater than {last}",
                extra={"job": job, "number": number},
            )
        record = BuildRecord(
            job=job,
            number=number,
            kind=kind,
            change_sets=list(change_sets or []),
            upstream_builds=dict(upstream_builds or {}),
        )
        builds.append(record)
        logger.info(
            "build_history.build_recorded",
            job=job,
            number=number,
            kind=kind.value,
        )
        return record

    def add_change_set(self, job: str, number: int, change_set: ChangeLogSet) -> BuildRecord:
        """Attach a checkout's change set to a build that is still running."""
        record = self._require(job, number)
        if not record.is_building:
            raise ConflictError(
                f"Build {record.full_display_name} is already completed",
                extra={"job": job, "number": number},
            )
        record.change_sets.append(change_set)
        logger.info(
            "build_history.change_set_added",
            job=job,
            number=number,
            entries=len(change_set.entries),
        )
        return record

    def complete_build(
        self,
        job: str,
        number: int,
        result: BuildResult,
        culprit_ids: frozenset[str] | set[str] | None = None,
    ) -> BuildRecord:
        """Mark a build completed with ``result``, optionally persisting culprits."""
        record = self._require(job, number)
        if not record.is_building:
            raise ConflictError(
                f"Build {record.full_display_name} is already completed",
                extra={"job": job, "number": number},
            )
        record.state = BuildState.COMPLETED
        record.result = result
        if culprit_ids is not None:
            record.culprit_ids = frozenset(culprit_ids)
        logger.info(
            "build_history.build_completed",
            job=job,
            number=number,
            result=result.value,
            culprits_persisted=culprit_ids is not None,
        )
        return record

    def persist_culprit_ids(
        self,
        job: str,
        number: int,
        culprit_ids: frozenset[str] | set[str],
    ) -> BuildRecord:
        """Store the authoritative culprit id list of a build."""
        record = self._require(job, number)
        record.culprit_ids = frozenset(culprit_ids)
        logger.info(
            "build_history.culprits_persisted",
            job=job,
            number=number,
            count=len(record.culprit_ids),
        )
        return record

    # -- Lookup -------------------------------------------------------------

    def get_build(self, job: str, number: int) -> BuildRecord | None:
        for record in self._jobs.get(job, []):
            if record.number == number:
                return record
        return None

    def list_builds(self, job: str, limit: int = 50) -> list[BuildRecord]:
        """Builds of ``job``, newest first."""
        builds = list(reversed(self._jobs.get(job, [])))
        return builds[:limit]

    def list_jobs(self) -> list[str]:
        return sorted(self._jobs)

    def previous_build(self, build: BuildRecord) -> BuildRecord | None:
        return next(self._walk_back(build), None)

    def next_build(self, build: BuildRecord) -> BuildRecord | None:
        for record in self._jobs.get(build.job, []):
            if record.number > build.number:
                return record
        return None

    def builds_in_range(self, job: str, after: int, up_to: int) -> list[BuildRecord]:
        """Builds of ``job`` numbered in ``(after, up_to]``, oldest first."""
        return [r for r in self._jobs.get(job, []) if after < r.number <= up_to]

    # -- BuildHistoryProvider -----------------------------------------------

    def previous_completed_build(self, build: BuildRecord) -> BuildRecord | None:
        for record in self._walk_back(build):
            if not record.is_building:
                return record
        return None

    def previous_not_failed_build(self, build: BuildRecord) -> BuildRecord | None:
        """Nearest earlier build whose result is not FAILURE.

        Running builds and aborted or unstable ones all qualify.
        """
        for record in self._walk_back(build):
            if record.result != BuildResult.FAILURE:
                return record
        return None

    def previous_successful_build(self, build: BuildRecord) -> BuildRecord | None:
        for record in self._walk_back(build):
            if record.result == BuildResult.SUCCESS:
                return record
        return None

    def is_in_progress(self, build: BuildRecord) -> bool:
        return build.is_building

    def result_severity(self, build: BuildRecord) -> BuildResult | None:
        return build.result

    # -- ChangeSetSource ----------------------------------------------------

    def change_sets(self, build: BuildRecord) -> Sequence[ChangeLogSet]:
        return list(build.change_sets)

    # -- Stats --------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        result_dist: dict[str, int] = {}
        total = 0
        in_progress = 0
        for builds in self._jobs.values():
            for r in builds:
                total += 1
                if r.is_building:
                    in_progress += 1
                    continue
                key = r.result.value if r.result else "none"
                result_dist[key] = result_dist.get(key, 0) + 1
        return {
            "total_jobs": len(self._jobs),
            "total_builds": total,
            "in_progress": in_progress,
            "result_distribution": result_dist,
        }

    # -- Internals ----------------------------------------------------------

    def _require(self, job: str, number: int) -> BuildRecord:
        record = self.get_build(job, number)
        if record is None:
            raise NotFoundError(
                f"Build {job} #{number} not found",
                extra={"job": job, "number": number},
            )
        return record

    def _walk_back(self, build: BuildRecord) -> Iterator[BuildRecord]:
        for record in reversed(self._jobs.get(build.job, [])):
            if record.number < build.number:
                yield record
