"""Tests for buildblame.changes.history — BuildHistory."""

from __future__ import annotations

import pytest

from buildblame.changes.history import BuildHistory
from buildblame.changes.models import (
    BuildKind,
    BuildResult,
    BuildState,
    ChangeEntry,
    ChangeLogSet,
    CulpritIdState,
    Identity,
)
from buildblame.changes.protocols import BuildHistoryProvider, ChangeSetSource
from buildblame.exceptions import ConflictError, NotFoundError


@pytest.fixture()
def history() -> BuildHistory:
    return BuildHistory()


def _run(history: BuildHistory, job: str, *results: BuildResult | None) -> None:
    """Record one build per result; ``None`` leaves the build running."""
    for result in results:
        record = history.record_build(job)
        if result is not None:
            history.complete_build(job, record.number, result)


# =========================================================================
# Recording
# =========================================================================


class TestRecordBuild:
    def test_numbers_auto_increment(self, history):
        first = history.record_build("app")
        second = history.record_build("app")
        assert (first.number, second.number) == (1, 2)

    def test_new_build_defaults(self, history):
        record = history.record_build("app")
        assert record.state == BuildState.IN_PROGRESS
        assert record.result is None
        assert record.kind == BuildKind.FREESTYLE
        assert record.culprit_id_state == CulpritIdState.UNSET

    def test_explicit_number(self, history):
        record = history.record_build("app", number=10)
        assert record.number == 10
        assert history.record_build("app").number == 11

    def test_non_increasing_number_rejected(self, history):
        history.record_build("app", number=5)
        with pytest.raises(ConflictError, match="greater than 5"):
            history.record_build("app", number=5)

    @pytest.mark.parametrize("number", [0, -3])
    def test_non_positive_number_rejected(self, history, number):
        with pytest.raises(ConflictError, match="at least 1"):
            history.record_build("app", number=number)
        assert history.list_builds("app") == []

    def test_jobs_are_independent(self, history):
        history.record_build("app")
        assert history.record_build("lib").number == 1
        assert history.list_jobs() == ["app", "lib"]


class TestCompleteBuild:
    def test_complete_sets_state_and_result(self, history):
        record = history.record_build("app")
        history.complete_build("app", 1, BuildResult.UNSTABLE)
        assert record.state == BuildState.COMPLETED
        assert record.result == BuildResult.UNSTABLE

    def test_complete_twice_rejected(self, history):
        history.record_build("app")
        history.complete_build("app", 1, BuildResult.SUCCESS)
        with pytest.raises(ConflictError):
            history.complete_build("app", 1, BuildResult.FAILURE)

    def test_complete_unknown_build(self, history):
        with pytest.raises(NotFoundError):
            history.complete_build("app", 3, BuildResult.SUCCESS)

    def test_complete_with_culprits(self, history):
        history.record_build("app")
        record = history.complete_build("app", 1, BuildResult.FAILURE, culprit_ids={"a"})
        assert record.culprit_ids == frozenset({"a"})
        assert record.culprit_id_state == CulpritIdState.POPULATED

    def test_persist_empty_culprits(self, history):
        history.record_build("app")
        record = history.persist_culprit_ids("app", 1, set())
        assert record.culprit_id_state == CulpritIdState.EMPTY


class TestChangeSets:
    def test_add_change_set_to_running_build(self, history):
        history.record_build("app")
        entry = ChangeEntry(commit_id="abc", author=Identity(id="u1"))
        history.add_change_set("app", 1, ChangeLogSet(entries=[entry]))
        record = history.get_build("app", 1)
        assert [cs.entries[0].commit_id for cs in history.change_sets(record)] == ["abc"]

    def test_add_change_set_to_completed_build_rejected(self, history):
        _run(history, "app", BuildResult.SUCCESS)
        with pytest.raises(ConflictError):
            history.add_change_set("app", 1, ChangeLogSet())

    def test_change_sets_returns_copy(self, history):
        record = history.record_build("app", change_sets=[ChangeLogSet()])
        sets = list(history.change_sets(record))
        sets.clear()
        assert len(record.change_sets) == 1


# =========================================================================
# Navigation
# =========================================================================


class TestNavigation:
    def test_previous_and_next(self, history):
        _run(history, "app", BuildResult.SUCCESS, BuildResult.FAILURE, None)
        second = history.get_build("app", 2)
        assert history.previous_build(second).number == 1
        assert history.next_build(second).number == 3
        assert history.previous_build(history.get_build("app", 1)) is None

    def test_previous_completed_skips_running(self, history):
        _run(history, "app", BuildResult.FAILURE, None, None)
        latest = history.get_build("app", 3)
        assert history.previous_completed_build(latest).number == 1

    def test_previous_not_failed_skips_failures_only(self, history):
        _run(history, "app", BuildResult.ABORTED, BuildResult.FAILURE, BuildResult.FAILURE, None)
        latest = history.get_build("app", 4)
        assert history.previous_not_failed_build(latest).number == 1

    def test_previous_not_failed_accepts_running(self, history):
        _run(history, "app", None, BuildResult.FAILURE, None)
        latest = history.get_build("app", 3)
        assert history.previous_not_failed_build(latest).number == 1

    def test_previous_successful(self, history):
        _run(history, "app", BuildResult.SUCCESS, BuildResult.UNSTABLE, BuildResult.FAILURE, None)
        latest = history.get_build("app", 4)
        assert history.previous_successful_build(latest).number == 1

    def test_missing_links_are_none(self, history):
        _run(history, "app", BuildResult.FAILURE, None)
        latest = history.get_build("app", 2)
        assert history.previous_successful_build(latest) is None
        assert history.previous_not_failed_build(latest) is None

    def test_builds_in_range(self, history):
        _run(history, "lib", *[BuildResult.SUCCESS] * 5)
        assert [b.number for b in history.builds_in_range("lib", 2, 4)] == [3, 4]

    def test_list_builds_newest_first(self, history):
        _run(history, "app", BuildResult.SUCCESS, BuildResult.SUCCESS, BuildResult.SUCCESS)
        assert [b.number for b in history.list_builds("app", limit=2)] == [3, 2]

    def test_satisfies_protocols(self, history):
        assert isinstance(history, BuildHistoryProvider)
        assert isinstance(history, ChangeSetSource)


class TestStats:
    def test_stats(self, history):
        _run(history, "app", BuildResult.SUCCESS, BuildResult.FAILURE, None)
        _run(history, "lib", BuildResult.SUCCESS)
        stats = history.get_stats()
        assert stats["total_jobs"] == 2
        assert stats["total_builds"] == 4
        assert stats["in_progress"] == 1
        assert stats["result_distribution"] == {"success": 2, "failure": 1}
