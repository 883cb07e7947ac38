# src/proofday/attestation/base.py
"""
Abstract Base Class for Attestors.

An attestor durably records a finalized result under an opaque identifier.
``publish`` never raises for business reasons. Whether infrastructure
failure degrades to a mocked receipt or raises
:class:`~proofday.exceptions.UpstreamError` is up to the implementation;
mocked receipts always carry ``mocked=True``.
"""

import abc

from ..models import AttestationReceipt, AttestationRecord

MOCK_TX_REF = "0xMOCK"


def mock_receipt(record: AttestationRecord) -> AttestationReceipt:
    """
    Deterministic mocked receipt for a record.

    The identifier depends only on the result, the disputed flag and the
    goal reference, so publishing the same record twice yields the same id.
    """
    marker = f"{record.result.value}-DISPUTED" if record.disputed else record.result.value
    return AttestationReceipt(
        attestation_id=f"MOCK-{marker}-{record.ref}",
        tx_ref=MOCK_TX_REF,
        mocked=True,
        result=record.result,
        disputed=record.disputed,
    )


class BaseAttestor(abc.ABC):
    """Abstract Base Class for attestation ledger clients."""

    @abc.abstractmethod
    def get_name(self) -> str:
        """Return the attestor's identifier (e.g. "mock", "eas")."""
        pass

    @abc.abstractmethod
    async def publish(self, record: AttestationRecord) -> AttestationReceipt:
        """
        Publish a finalized result.

        Args:
            record: The result tuple to attest.

        Returns:
            The receipt with the attestation id, transaction reference and mocked flag.
        """
        pass

    async def close(self) -> None:
        """Release any network resources held by the attestor."""
        pass
