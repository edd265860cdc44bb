"""blockchain.info data API adapter (mainnet only)."""
from __future__ import annotations
import logging
from typing import List, Optional

from core.errors import AdapterError
from core.types import Transaction
from gateway.base import BlockchainAdapter
from gateway.rest import DEFAULT_TIMEOUT_S, RestClient

log = logging.getLogger(__name__)

BASE_URL = "https://blockchain.info"


class BlockchainInfoAdapter(BlockchainAdapter):

    name = "blockchain_info"

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S, client: Optional[RestClient] = None):
        self.client = client or RestClient(BASE_URL, self.name, timeout_s)

    def fetch_transaction(self, tid: str, address: Optional[str] = None) -> Transaction:
        data = self.client.get_json(f"/rawtx/{tid}")
        return self._to_transaction(data, address, self._latest_height())

    def fetch_transactions_for(self, address: str) -> List[Transaction]:
        data = self.client.get_json(f"/rawaddr/{address}")
        txs = data.get("txs")
        if not isinstance(txs, list):
            raise AdapterError(f"malformed rawaddr response for {address}", adapter=self.name)
        if not txs:
            return []
        height = self._latest_height()
        return [self._to_transaction(tx, address, height) for tx in txs]

    def fetch_balance_for(self, address: str) -> int:
        data = self.client.get_json("/balance", params={"active": address})
        try:
            return int(data[address]["final_balance"])
        except (KeyError, TypeError, ValueError) as e:
            raise AdapterError(f"malformed balance response for {address}", adapter=self.name) from e

    # --- Parsing ---

    def _latest_height(self) -> int:
        data = self.client.get_json("/latestblock")
        try:
            return int(data["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise AdapterError("malformed latestblock response", adapter=self.name) from e

    def _to_transaction(self, data: dict, address: Optional[str], latest_height: int) -> Transaction:
        try:
            outputs = data["out"]
            tid = data["hash"]
        except (KeyError, TypeError) as e:
            raise AdapterError("malformed transaction payload", adapter=self.name) from e
        amount = sum(
            int(o.get("value", 0)) for o in outputs
            if address is None or o.get("addr") == address
        )
        block_height = data.get("block_height")
        confirmations = 0
        if block_height is not None:
            confirmations = max(0, latest_height - int(block_height) + 1)
        return Transaction(tid=tid, amount=amount, confirmations=confirmations,
                           block_height=block_height)
