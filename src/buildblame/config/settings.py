"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """buildblame configuration loaded from environment variables."""

    # Culprits
    upstream_culprits: bool = False  # blame upstream committers on downstream builds

    # Identities
    auto_create_users: bool = True

    model_config = {
        "env_prefix": "BUILDBLAME_",
        "env_file": ".env",
        "extra": "ignore",
    }


class CulpritConfig(BaseModel):
    """Options injected into a CulpritAggregator at construction."""

    upstream_culprits: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> CulpritConfig:
        return cls(upstream_culprits=settings.upstream_culprits)
