# src/proofday/verification/manager.py
"""Builds the configured post verifier."""

import logging

from ..config.models import DisputeConfig
from ..exceptions import ConfigError
from .base import BasePostVerifier
from .static import StaticPostVerifier
from .syndication import SyndicationPostVerifier

logger = logging.getLogger(__name__)

VERIFIER_TYPES = ("syndication", "static")


def create_post_verifier(config: DisputeConfig) -> BasePostVerifier:
    """
    Instantiate the verifier named by ``config.verifier``.

    Raises:
        ConfigError: If the verifier type is unknown.
    """
    if config.verifier == "syndication":
        logger.info("Using syndication post verifier at %s", config.syndication_url)
        return SyndicationPostVerifier(base_url=config.syndication_url, timeout=config.fetch_timeout)
    if config.verifier == "static":
        logger.info("Using static post verifier (no posts preloaded)")
        return StaticPostVerifier()
    raise ConfigError(f"Unsupported post verifier: '{config.verifier}'. Available: {list(VERIFIER_TYPES)}")
