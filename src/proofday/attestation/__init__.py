# src/proofday/attestation/__init__.py
"""
Attestation clients for the proofday service.

Includes the abstract BaseAttestor, the deterministic MockAttestor and the
factory selecting an implementation from configuration. The EAS attestor
is imported lazily by the factory because it needs web3.
"""

from .base import MOCK_TX_REF, BaseAttestor, mock_receipt
from .manager import create_attestor
from .mock_attestor import MockAttestor

__all__ = [
    "BaseAttestor",
    "MockAttestor",
    "MOCK_TX_REF",
    "create_attestor",
    "mock_receipt",
]
