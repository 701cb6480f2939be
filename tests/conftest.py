"""
Pytest configuration for citrea-analytics.

Provides fixtures for:
- A temporary SQLite cache with the schema applied
- An in-process stand-in for ``AsyncWeb3`` with scripted logs, receipts and blocks
- Builders for raw logs (plain and ABI-encoded ``Swap``)
"""

from __future__ import annotations

from typing import Any, Dict, Generator, List, Optional

import pytest
from eth_abi import encode as abi_encode

from citrea_analytics.db import db, ensure_schema
from citrea_analytics.decoder import SWAP_TOPIC0

CONTRACT = "0x72b1fc6b54733250f4e18da4a20bb2dcbc598556"
OTHER_TOPIC0 = "0x" + "ab" * 32
BLOCK_TIME = 1_700_000_000  # 2023-11-14 22:13:20 UTC


def tx_hash(n: int) -> str:
    return "0x" + format(n, "064x")


def address(n: int) -> str:
    return "0x" + format(n, "040x")


def addr_topic(addr: str) -> str:
    return "0x" + "0" * 24 + addr[2:]


def make_log(block: int, txh: str, topics: Optional[List[str]] = None, data: str = "0x") -> Dict[str, Any]:
    return {
        "address": CONTRACT,
        "blockNumber": block,
        "transactionHash": txh,
        "logIndex": 0,
        "topics": topics if topics is not None else [OTHER_TOPIC0],
        "data": data,
    }


def make_swap_log(
    block: int,
    txh: str,
    sender: str,
    amount_in: int = 10**18,
    amount_out: int = 2 * 10**18,
    token_in: str = address(0xA1),
    token_out: str = address(0xB2),
    destination: Optional[str] = None,
) -> Dict[str, Any]:
    data = abi_encode(
        ["uint256", "uint256", "address", "address", "address"],
        [amount_in, amount_out, token_in, token_out, destination or sender],
    )
    return make_log(block, txh, topics=[SWAP_TOPIC0, addr_topic(sender)], data="0x" + data.hex())


class FakeEth:
    """Scripted subset of ``AsyncWeb3.eth`` used by the scanner."""

    def __init__(self, head: int, chain_id: int = 5115) -> None:
        self.head = head
        self._chain_id = chain_id
        self.logs: List[Dict[str, Any]] = []
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.timestamps: Dict[int, int] = {}
        self.get_logs_calls: List[Dict[str, Any]] = []
        self.get_logs_failures = 0
        self.failing_receipts: set[str] = set()

    @property
    def block_number(self):
        async def _head() -> int:
            return self.head
        return _head()

    @property
    def chain_id(self):
        async def _chain() -> int:
            return self._chain_id
        return _chain()

    def add_tx(self, lg: Dict[str, Any], sender: str, gas_used: int, timestamp: Optional[int] = None) -> None:
        self.logs.append(lg)
        self.receipts[lg["transactionHash"]] = {"from": sender, "gasUsed": gas_used}
        self.timestamps.setdefault(lg["blockNumber"], timestamp if timestamp is not None else BLOCK_TIME + lg["blockNumber"])

    async def get_logs(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        self.get_logs_calls.append(dict(params))
        if self.get_logs_failures > 0:
            self.get_logs_failures -= 1
            raise ConnectionError("rpc unavailable")
        lo, hi = params["fromBlock"], params["toBlock"]
        return [lg for lg in self.logs if lo <= lg["blockNumber"] <= hi]

    async def get_transaction_receipt(self, txh: str) -> Dict[str, Any]:
        if txh in self.failing_receipts:
            raise ValueError(f"receipt {txh} not found")
        return self.receipts[txh]

    async def get_block(self, block_identifier: int, full_transactions: bool = False) -> Dict[str, Any]:
        return {"number": block_identifier, "timestamp": self.timestamps[block_identifier]}


class FakeWeb3:
    def __init__(self, eth: FakeEth) -> None:
        self.eth = eth


@pytest.fixture
def conn(tmp_path) -> Generator:
    c = db(str(tmp_path / "cache.db"))
    ensure_schema(c)
    yield c
    c.close()


@pytest.fixture
def eth() -> FakeEth:
    return FakeEth(head=0)


@pytest.fixture
def w3(eth: FakeEth) -> FakeWeb3:
    return FakeWeb3(eth)
