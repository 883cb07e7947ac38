# src/proofday/config/__init__.py
"""
Configuration package for proofday.

Configuration files:
    - default_config.toml: Packaged defaults
    - User config: ~/.config/proofday/config.toml
    - Custom config: load_config(config_path=...)

Environment variables:
    - Prefix: PROOFDAY_
    - "_" separates levels, "__" is a literal underscore: PROOFDAY_DISPUTE_FETCH__ATTEMPTS
"""

from .loader import dotted_overrides, load_confy_config, load_config, load_default_config
from .models import (
    AttestorConfig,
    DisputeConfig,
    JudgeConfig,
    LifecycleConfig,
    ProofDayConfig,
    ServerConfig,
    StoreConfig,
)

__all__ = [
    "AttestorConfig",
    "DisputeConfig",
    "JudgeConfig",
    "LifecycleConfig",
    "ProofDayConfig",
    "ServerConfig",
    "StoreConfig",
    "dotted_overrides",
    "load_confy_config",
    "load_config",
    "load_default_config",
]
