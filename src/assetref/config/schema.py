"""
Pydantic models for assetref configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..index.cache import DISK_ROOT_KEYS
from ..prefs import DEFAULT_PREFERENCES_FILE


class BundledConfig(BaseModel):
    """Where the pictures shipped with the build are enumerated from.

    The manifest wins over the bundle directory when both exist.
    """

    manifest: Path | None = Field(
        default=None,
        description="JSON manifest written by build tooling (relative path -> URL)",
    )
    bundle_dir: Path | None = Field(
        default=None,
        description="Directory of bundled pictures, used when there is no manifest",
    )
    url_prefix: str = Field(
        default="/static/productPictures/",
        description="URL prefix under which bundle_dir is served",
    )
    asset_root: str = Field(
        default="productPictures",
        description="Structural prefix stripped from manifest keys",
    )

    model_config = {"extra": "forbid"}


class DiskConfig(BaseModel):
    """Pictures scanned from a local folder chosen by the user."""

    enabled: bool = True
    """If False, behaves as a host without filesystem access."""

    preferences_file: Path = DEFAULT_PREFERENCES_FILE
    root_keys: list[str] = Field(
        default_factory=lambda: list(DISK_ROOT_KEYS),
        description="Preference keys holding the folder path, first non-empty wins",
    )

    model_config = {"extra": "forbid"}

    @field_validator("root_keys")
    @classmethod
    def _require_keys(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("root_keys must contain at least one key")
        return v


class MediaConfig(BaseModel):
    """Resolution of @media/ references."""

    dir: str = "data/media/"
    cwd: Path | None = Field(
        default=None,
        description="Base directory for media files. Defaults to the process cwd.",
    )

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Complete application configuration."""

    bundled: BundledConfig = Field(default_factory=BundledConfig)
    disk: DiskConfig = Field(default_factory=DiskConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
