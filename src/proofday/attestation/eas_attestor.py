# src/proofday/attestation/eas_attestor.py
"""
Ethereum Attestation Service (EAS) attestor.

Publishes results on-chain against the schema

    string app,string username,string goal,string result,bool disputed,string ref

The platform wallet is both attester and recipient. Missing credentials
(RPC URL, private key or schema UID) yield mocked receipts; publication
failures either degrade to a mocked receipt or raise UpstreamError,
depending on ``fallback_to_mock``.
"""

import logging
from typing import Any, List, Optional

try:
    from eth_abi import encode as abi_encode
    from eth_account import Account
    from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
    web3_available = True
except ImportError:
    web3_available = False
    AsyncWeb3 = None  # type: ignore [assignment]

from ..exceptions import UpstreamError
from ..models import AttestationReceipt, AttestationRecord
from .base import BaseAttestor, mock_receipt

logger = logging.getLogger(__name__)

SCHEMA = "string app,string username,string goal,string result,bool disputed,string ref"
SCHEMA_TYPES: List[str] = ["string", "string", "string", "string", "bool", "string"]
ZERO_UID = b"\x00" * 32

EAS_ABI: List[dict] = [
    {
        "name": "attest",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [{
            "name": "request",
            "type": "tuple",
            "components": [
                {"name": "schema", "type": "bytes32"},
                {
                    "name": "data",
                    "type": "tuple",
                    "components": [
                        {"name": "recipient", "type": "address"},
                        {"name": "expirationTime", "type": "uint64"},
                        {"name": "revocable", "type": "bool"},
                        {"name": "refUID", "type": "bytes32"},
                        {"name": "data", "type": "bytes"},
                        {"name": "value", "type": "uint256"},
                    ],
                },
            ],
        }],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "name": "Attested",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "recipient", "type": "address", "indexed": True},
            {"name": "attester", "type": "address", "indexed": True},
            {"name": "uid", "type": "bytes32", "indexed": False},
            {"name": "schemaUID", "type": "bytes32", "indexed": True},
        ],
    },
]


def encode_attestation_data(record: AttestationRecord, app_name: str = "ProofOfDay") -> bytes:
    """ABI-encode a record in schema field order."""
    return abi_encode(
        SCHEMA_TYPES,
        [app_name, record.username, record.title, record.result.value, record.disputed, record.ref],
    )


class EASAttestor(BaseAttestor):
    """
    Attestor publishing to an EAS contract through web3.py.

    Args:
        rpc_url: JSON-RPC endpoint of the chain.
        private_key: Hex private key of the platform wallet.
        schema_uid: UID of the registered schema.
        contract_address: EAS contract address.
        app_name: Value written to the schema's ``app`` field.
        fallback_to_mock: Degrade to mocked receipts on publication failure.
        receipt_timeout: Seconds to wait for the transaction receipt.
    """

    def __init__(self, rpc_url: str = "", private_key: str = "", schema_uid: str = "",
                 contract_address: str = "", app_name: str = "ProofOfDay",
                 fallback_to_mock: bool = True, receipt_timeout: float = 120.0):
        self.rpc_url = rpc_url
        self.schema_uid = schema_uid
        self.contract_address = contract_address
        self.app_name = app_name
        self.fallback_to_mock = fallback_to_mock
        self.receipt_timeout = receipt_timeout
        self._private_key = private_key
        self._w3: Optional[Any] = None

        if not self.configured:
            logger.warning("EAS attestor missing RPC URL, private key or schema UID; "
                           "attestations will be mocked.")
        elif not web3_available:
            raise ImportError("web3 library is not installed. Please install `web3`.")

    @property
    def configured(self) -> bool:
        return bool(self.rpc_url and self._private_key and self.schema_uid)

    def get_name(self) -> str:
        return "eas"

    def _web3(self) -> Any:
        if self._w3 is None:
            self._w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._w3

    async def publish(self, record: AttestationRecord) -> AttestationReceipt:
        if not self.configured:
            return mock_receipt(record)
        try:
            uid, tx_hash = await self._attest_onchain(record)
        except Exception as e:
            if self.fallback_to_mock:
                logger.error("EAS publication failed for goal %s, returning mocked receipt: %s",
                             record.ref, e, exc_info=True)
                return mock_receipt(record)
            logger.error("EAS publication failed for goal %s: %s", record.ref, e, exc_info=True)
            raise UpstreamError("attestor", f"EAS publication failed: {e}", cause=e) from e

        logger.info("Published EAS attestation %s (tx %s) for goal %s", uid, tx_hash, record.ref)
        return AttestationReceipt(
            attestation_id=uid,
            tx_ref=tx_hash,
            mocked=False,
            result=record.result,
            disputed=record.disputed,
        )

    async def _attest_onchain(self, record: AttestationRecord) -> tuple[str, str]:
        w3 = self._web3()
        account = Account.from_key(self._private_key)
        contract = w3.eth.contract(address=Web3.to_checksum_address(self.contract_address), abi=EAS_ABI)

        request = (
            Web3.to_bytes(hexstr=self.schema_uid),
            (
                account.address,  # platform as recipient
                0,                # no expiry
                True,             # revocable
                ZERO_UID,
                encode_attestation_data(record, self.app_name),
                0,
            ),
        )
        tx = await contract.functions.attest(request).build_transaction({
            "from": account.address,
            "nonce": await w3.eth.get_transaction_count(account.address),
            "value": 0,
        })
        signed = account.sign_transaction(tx)
        tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt.get("status") != 1:
            raise RuntimeError(f"attest transaction {Web3.to_hex(tx_hash)} reverted")

        events = contract.events.Attested().process_receipt(receipt)
        if not events:
            raise RuntimeError(f"attest transaction {Web3.to_hex(tx_hash)} emitted no Attested event")
        return Web3.to_hex(events[0]["args"]["uid"]), Web3.to_hex(tx_hash)
