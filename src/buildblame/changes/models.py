"""Build, change-set and identity models shared by the culprit engine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from buildblame.exceptions import AuthorResolutionError

# --- Enums ---


class BuildResult(StrEnum):
    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    NOT_BUILT = "not_built"
    ABORTED = "aborted"

    @property
    def severity(self) -> int:
        return _RESULT_ORDER[self]

    def is_worse_than(self, other: BuildResult) -> bool:
        return self.severity > other.severity


class BuildState(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BuildKind(StrEnum):
    FREESTYLE = "freestyle"
    MATRIX = "matrix"
    PIPELINE = "pipeline"


class CulpritIdState(StrEnum):
    UNSET = "unset"
    EMPTY = "empty"
    POPULATED = "populated"


# --- Ordering helpers ---

_RESULT_ORDER = {
    BuildResult.SUCCESS: 0,
    BuildResult.UNSTABLE: 1,
    BuildResult.FAILURE: 2,
    BuildResult.NOT_BUILT: 3,
    BuildResult.ABORTED: 4,
}

DEPENDENCY_TRACKING_KINDS = frozenset({BuildKind.FREESTYLE, BuildKind.MATRIX})


# --- Models ---


class Identity(BaseModel):
    """A person who can be blamed for a change.

    Two handles for the same ``id`` compare equal and hash alike, whatever
    their display data.
    """

    id: str
    full_name: str = ""
    email: str = ""
    resolved: bool = True

    model_config = {"frozen": True}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def display_name(self) -> str:
        return self.full_name or self.id

    @classmethod
    def unresolved(cls, user_id: str) -> Identity:
        """Placeholder for an id whose lookup failed."""
        return cls(id=user_id, resolved=False)


class ChangeEntry(BaseModel):
    """One commit as reported by the SCM layer."""

    commit_id: str = ""
    message: str = ""
    author: Identity | None = None

    def get_author(self) -> Identity:
        if self.author is None:
            raise AuthorResolutionError(
                f"No author recorded for commit {self.commit_id or '<unknown>'}",
                extra={"commit_id": self.commit_id},
            )
        return self.author


class ChangeLogSet(BaseModel):
    """Entries produced by a single checkout, in SCM order."""

    scm: str = "git"
    entries: list[ChangeEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries


class BuildRecord(BaseModel):
    """A single run of a job.

    ``culprit_ids`` is the persisted culprit list: ``None`` when it was never
    written, otherwise authoritative even if empty.
    """

    job: str
    number: int = Field(ge=1)
    kind: BuildKind = BuildKind.FREESTYLE
    state: BuildState = BuildState.IN_PROGRESS
    result: BuildResult | None = None
    change_sets: list[ChangeLogSet] = Field(default_factory=list)
    upstream_builds: dict[str, int] = Field(default_factory=dict)
    culprit_ids: frozenset[str] | None = None

    @property
    def display_name(self) -> str:
        return f"#{self.number}"

    @property
    def full_display_name(self) -> str:
        return f"{self.job} {self.display_name}"

    @property
    def is_building(self) -> bool:
        return self.state == BuildState.IN_PROGRESS

    @property
    def supports_dependency_tracking(self) -> bool:
        return self.kind in DEPENDENCY_TRACKING_KINDS

    @property
    def culprit_id_state(self) -> CulpritIdState:
        if self.culprit_ids is None:
            return CulpritIdState.UNSET
        if not self.culprit_ids:
            return CulpritIdState.EMPTY
        return CulpritIdState.POPULATED


class DependencyChange(BaseModel):
    """Upstream builds of one project that are new between two downstream builds.

    ``from_number`` is exclusive, ``to_number`` inclusive.
    """

    project: str
    from_number: int
    to_number: int
    builds: list[BuildRecord] = Field(default_factory=list)
