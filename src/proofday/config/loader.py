# src/proofday/config/loader.py
"""
Configuration loading for proofday.

Sources are layered by confy, later ones winning:

1. Packaged ``default_config.toml``
2. User TOML file (explicit path, else ``~/.config/proofday/config.toml`` if present)
3. Environment variables with the ``PROOFDAY`` prefix
4. An overrides dictionary supplied by the caller

Environment variable names follow confy's convention: ``_`` separates
levels and ``__`` stands for a literal underscore inside a key, so
``PROOFDAY_DISPUTE_FETCH__ATTEMPTS=5`` sets ``dispute.fetch_attempts``.

The merged configuration is validated into a :class:`ProofDayConfig`.
"""

from __future__ import annotations

import importlib.resources
import logging
import tomllib
from pathlib import Path
from typing import Any, Mapping

from confy.loader import Config as ConfyConfig
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigError
from .models import ProofDayConfig

logger = logging.getLogger(__name__)

DEFAULT_USER_CONFIG_PATH = "~/.config/proofday/config.toml"
DEFAULT_ENV_PREFIX = "PROOFDAY"


def load_default_config() -> dict[str, Any]:
    """Read the packaged default configuration."""
    resource = importlib.resources.files("proofday.config").joinpath("default_config.toml")
    with resource.open("rb") as f:
        return tomllib.load(f)


def dotted_overrides(overrides: Mapping[str, Any], parent: str = "") -> dict[str, Any]:
    """
    Flatten a nested overrides mapping into confy's dotted keys.

    Example:
        >>> dotted_overrides({"store": {"type": "redis"}})
        {'store.type': 'redis'}
    """
    flat: dict[str, Any] = {}
    for key, value in overrides.items():
        path = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, Mapping) and value:
            flat.update(dotted_overrides(value, path))
        else:
            flat[path] = value
    return flat


def _user_config_path(config_path: str | Path | None) -> Path | None:
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    path = Path(DEFAULT_USER_CONFIG_PATH).expanduser()
    return path if path.exists() else None


def load_confy_config(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    env_prefix: str | None = DEFAULT_ENV_PREFIX,
) -> ConfyConfig:
    """
    Build the layered confy configuration without validating it.

    Raises:
        ConfigError: If the explicit file is missing or any source cannot be read.
    """
    file_path = _user_config_path(config_path)
    try:
        config = ConfyConfig(
            defaults=load_default_config(),
            file_path=str(file_path) if file_path else None,
            prefix=env_prefix or None,
            overrides_dict=dotted_overrides(overrides) if overrides else None,
        )
    except Exception as e:
        raise ConfigError(f"proofday configuration loading failed: {e}") from e
    if file_path:
        logger.debug("Loaded user configuration from %s", file_path)
    return config


def load_config(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    env_prefix: str | None = DEFAULT_ENV_PREFIX,
) -> ProofDayConfig:
    """
    Load and validate the proofday configuration.

    Args:
        config_path: Optional user TOML file. Must exist when given explicitly.
        overrides: Optional nested dictionary applied last.
        env_prefix: Environment variable prefix; ``None`` disables env overrides.

    Returns:
        A validated ProofDayConfig.

    Raises:
        ConfigError: If a source cannot be read or validation fails.
    """
    config = load_confy_config(config_path=config_path, overrides=overrides, env_prefix=env_prefix)
    try:
        return ProofDayConfig(**config.as_dict())
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid proofday configuration: {e}") from e
