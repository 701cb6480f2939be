from dataclasses import dataclass


@dataclass(frozen=True)
class TransactionRecord:
    """One row per transaction that emitted a log at the scanned contract."""

    tx_hash: str
    block_number: int
    from_address: str
    gas_used: str
    timestamp: int


@dataclass(frozen=True)
class SwapEvent:
    """A decoded ``Swap`` log. Addresses are lowercased, amounts are decimal text."""

    tx_hash: str
    block_number: int
    sender: str
    amount_in: str
    amount_out: str
    token_in: str
    token_out: str
    destination: str
    timestamp: int = 0
