"""Unified configuration loaded from .ghostpost.toml and env vars.

Loading order: defaults → TOML file → env vars.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ghostpost.errors import ConfigurationError
from ghostpost.integrations.ghost import DEFAULT_API_VERSION, GhostConfig
from ghostpost.shared.images import DEFAULT_MODEL

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".ghostpost.toml"
CONFIG_SEARCH_PATHS = [
    Path(".") / CONFIG_FILENAME,
    Path.home() / ".config" / "ghostpost" / "config.toml",
]


class GhostSectionConfig(BaseModel):
    """[ghost] section."""

    url: str = ""
    admin_api_key: str = ""
    api_version: str = DEFAULT_API_VERSION
    timeout: float = 30.0


class ImagesSectionConfig(BaseModel):
    """[images] section."""

    model: str = DEFAULT_MODEL
    api_key: str = ""


class SessionSectionConfig(BaseModel):
    """[session] section."""

    state_file: str = ".ghostpost-session.json"


class GhostpostConfig(BaseModel):
    """Top-level configuration model."""

    ghost: GhostSectionConfig = Field(default_factory=GhostSectionConfig)
    images: ImagesSectionConfig = Field(default_factory=ImagesSectionConfig)
    session: SessionSectionConfig = Field(default_factory=SessionSectionConfig)

    def to_ghost_config(self) -> GhostConfig:
        """Convert to GhostConfig for the Admin API client."""
        return GhostConfig(
            url=self.ghost.url,
            admin_api_key=self.ghost.admin_api_key,
            api_version=self.ghost.api_version,
            timeout=self.ghost.timeout,
        )


def load_config(path: str | Path | None = None) -> GhostpostConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .ghostpost.toml in CWD
    3. ~/.config/ghostpost/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged GhostpostConfig.

    Raises:
        ConfigurationError: If an explicit path is missing, or a file is
            unreadable or holds invalid values.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if not toml_path.exists():
            raise ConfigurationError(f"Config file not found: {toml_path}")
        data = _load_toml(toml_path)
    else:
        for candidate in CONFIG_SEARCH_PATHS:
            if candidate.exists():
                data = _load_toml(candidate)
                break

    try:
        config = GhostpostConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    return _apply_env_vars(config)


def _load_toml(path: Path) -> dict[str, object]:
    """Read and parse a TOML file."""
    logger.debug("Loading config from %s", path)
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc


def _apply_env_vars(config: GhostpostConfig) -> GhostpostConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "GHOST_URL": ("ghost", "url"),
        "GHOST_ADMIN_API_KEY": ("ghost", "admin_api_key"),
        "GOOGLE_AI_API_KEY": ("images", "api_key"),
        "IMAGE_MODEL": ("images", "model"),
        "GHOSTPOST_SESSION_FILE": ("session", "state_file"),
    }
    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value:
            data[section][field] = value

    return GhostpostConfig.model_validate(data)
