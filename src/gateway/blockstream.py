"""Blockstream Esplora API adapter (mainnet and testnet)."""
from __future__ import annotations
import logging
from typing import List, Optional

from core.errors import AdapterError
from core.types import Transaction
from gateway.base import BlockchainAdapter
from gateway.rest import DEFAULT_TIMEOUT_S, RestClient

log = logging.getLogger(__name__)

BASE_URL = "https://blockstream.info/api"
BASE_URL_TESTNET = "https://blockstream.info/testnet/api"


class BlockstreamAdapter(BlockchainAdapter):

    name = "blockstream"

    def __init__(self, testnet: bool = False, timeout_s: float = DEFAULT_TIMEOUT_S,
                 client: Optional[RestClient] = None):
        self.testnet = testnet
        base_url = BASE_URL_TESTNET if testnet else BASE_URL
        self.client = client or RestClient(base_url, self.name, timeout_s)

    @classmethod
    def testnet_adapter(cls, **kwargs) -> BlockstreamAdapter:
        return cls(testnet=True, **kwargs)

    def fetch_transaction(self, tid: str, address: Optional[str] = None) -> Transaction:
        data = self.client.get_json(f"/tx/{tid}")
        return self._to_transaction(data, address, self._tip_height())

    def fetch_transactions_for(self, address: str) -> List[Transaction]:
        # Esplora returns up to 50 mempool + the 25 newest confirmed transactions
        txs = self.client.get_json(f"/address/{address}/txs")
        if not isinstance(txs, list):
            raise AdapterError(f"malformed txs response for {address}", adapter=self.name)
        if not txs:
            return []
        height = self._tip_height()
        return [self._to_transaction(tx, address, height) for tx in txs]

    def fetch_balance_for(self, address: str) -> int:
        data = self.client.get_json(f"/address/{address}")
        try:
            balance = 0
            for key in ("chain_stats", "mempool_stats"):
                stats = data[key]
                balance += int(stats["funded_txo_sum"]) - int(stats["spent_txo_sum"])
            return balance
        except (KeyError, TypeError, ValueError) as e:
            raise AdapterError(f"malformed address response for {address}", adapter=self.name) from e

    # --- Parsing ---

    def _tip_height(self) -> int:
        return self.client.get_int("/blocks/tip/height")

    def _to_transaction(self, data: dict, address: Optional[str], tip_height: int) -> Transaction:
        try:
            outputs = data["vout"]
            tid = data["txid"]
            status = data.get("status") or {}
        except (KeyError, TypeError, AttributeError) as e:
            raise AdapterError("malformed transaction payload", adapter=self.name) from e
        amount = sum(
            int(o.get("value", 0)) for o in outputs
            if address is None or o.get("scriptpubkey_address") == address
        )
        block_height = status.get("block_height") if status.get("confirmed") else None
        confirmations = 0
        if block_height is not None:
            confirmations = max(0, tip_height - int(block_height) + 1)
        return Transaction(tid=tid, amount=amount, confirmations=confirmations,
                           block_height=block_height)
