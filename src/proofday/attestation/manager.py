# src/proofday/attestation/manager.py
"""Builds the configured attestor."""

import logging

from ..config.models import AttestorConfig
from ..exceptions import ConfigError
from .base import BaseAttestor
from .mock_attestor import MockAttestor

logger = logging.getLogger(__name__)

ATTESTOR_TYPES = ("mock", "eas")


def create_attestor(config: AttestorConfig) -> BaseAttestor:
    """
    Instantiate the attestor named by ``config.type``.

    Raises:
        ConfigError: If the type is unknown.
    """
    attestor_type = config.type.lower()
    if attestor_type not in ATTESTOR_TYPES:
        raise ConfigError(f"Unsupported attestor type: '{config.type}'. Available: {list(ATTESTOR_TYPES)}")

    if attestor_type == "mock":
        logger.info("Using mock attestor")
        return MockAttestor()

    from .eas_attestor import EASAttestor

    settings = config.resolved()
    logger.info("Using EAS attestor at contract %s", settings["contract_address"])
    return EASAttestor(
        rpc_url=settings["rpc_url"],
        private_key=settings["private_key"],
        schema_uid=settings["schema_uid"],
        contract_address=settings["contract_address"],
        app_name=config.app_name,
        fallback_to_mock=config.fallback_to_mock,
        receipt_timeout=config.receipt_timeout,
    )
