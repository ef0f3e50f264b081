"""Build change tracking and culprit attribution.

Aggregates the people responsible for a build from its own change sets,
broken predecessors and, optionally, upstream dependency builds.
"""

from buildblame.changes.culprits import CulpritAggregator
from buildblame.changes.dependencies import UpstreamDependencyIndex
from buildblame.changes.factory import build_aggregator
from buildblame.changes.history import BuildHistory
from buildblame.changes.identities import UserDirectory
from buildblame.changes.models import (
    BuildKind,
    BuildRecord,
    BuildResult,
    BuildState,
    ChangeEntry,
    ChangeLogSet,
    CulpritIdState,
    DependencyChange,
    Identity,
)

__all__ = [
    "BuildHistory",
    "BuildKind",
    "BuildRecord",
    "BuildResult",
    "BuildState",
    "ChangeEntry",
    "ChangeLogSet",
    "CulpritAggregator",
    "CulpritIdState",
    "DependencyChange",
    "Identity",
    "UpstreamDependencyIndex",
    "UserDirectory",
    "build_aggregator",
]
