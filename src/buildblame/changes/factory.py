"""Wire a CulpritAggregator over the in-memory collaborators."""

from __future__ import annotations

from buildblame.changes.culprits import CulpritAggregator
from buildblame.changes.dependencies import UpstreamDependencyIndex
from buildblame.changes.history import BuildHistory
from buildblame.changes.identities import UserDirectory
from buildblame.config.settings import CulpritConfig, Settings


def build_aggregator(
    history: BuildHistory,
    directory: UserDirectory | None = None,
    settings: Settings | None = None,
) -> CulpritAggregator:
    settings = settings or Settings()
    if directory is None:
        directory = UserDirectory(auto_create=settings.auto_create_users)
    return CulpritAggregator(
        history=history,
        change_sets=history,
        identities=directory,
        dependencies=UpstreamDependencyIndex(history),
        config=CulpritConfig.from_settings(settings),
    )
