# src/proofday/attestation/mock_attestor.py
"""Attestor that only produces deterministic mocked receipts."""

import logging

from ..models import AttestationReceipt, AttestationRecord
from .base import BaseAttestor, mock_receipt

logger = logging.getLogger(__name__)


class MockAttestor(BaseAttestor):
    """Returns ``MOCK-...`` receipts flagged ``mocked=True``; never touches a network."""

    def get_name(self) -> str:
        return "mock"

    async def publish(self, record: AttestationRecord) -> AttestationReceipt:
        receipt = mock_receipt(record)
        logger.info("Mock attestation %s for goal %s", receipt.attestation_id, record.ref)
        return receipt
