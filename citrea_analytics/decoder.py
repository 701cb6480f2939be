"""
Swap event decoding for the router contract.

The router emits several event kinds; only ``Swap`` is decoded, every other
log (or a malformed ``Swap``) maps to ``None``.
"""

import logging
from typing import Any, Mapping, Optional

from eth_abi import decode as abi_decode
from web3 import Web3

from citrea_analytics.helpers import hex_to_bytes, hex_to_int, to_hex, topic_to_addr
from citrea_analytics.models import SwapEvent

log = logging.getLogger(__name__)

# Swap(address indexed sender, uint256 amount_in, uint256 amount_out,
#      address token_in, address token_out, address destination)
SWAP_SIGNATURE   = "Swap(address,uint256,uint256,address,address,address)"
SWAP_TOPIC0      = to_hex(Web3.keccak(text=SWAP_SIGNATURE)).lower()
SWAP_DATA_TYPES  = ["uint256", "uint256", "address", "address", "address"]


def decode_swap(raw_log: Mapping[str, Any]) -> Optional[SwapEvent]:
    """
    Decode a raw log into a :class:`SwapEvent`.

    Returns ``None`` for any log that is not a well-formed ``Swap``. The
    timestamp is left at 0; the caller fills it from the block header.
    """
    try:
        topics = [to_hex(t).lower() for t in raw_log.get("topics") or []]
        if len(topics) < 2 or topics[0] != SWAP_TOPIC0:
            return None
        sender = topic_to_addr(topics[1])
        amount_in, amount_out, token_in, token_out, destination = abi_decode(
            SWAP_DATA_TYPES, hex_to_bytes(raw_log.get("data") or b"")
        )
        return SwapEvent(
            tx_hash=to_hex(raw_log["transactionHash"]).lower(),
            block_number=hex_to_int(raw_log["blockNumber"]),
            sender=sender,
            amount_in=str(amount_in),
            amount_out=str(amount_out),
            token_in=token_in.lower(),
            token_out=token_out.lower(),
            destination=destination.lower(),
        )
    except Exception as e:
        log.debug("[decode] not a swap (%s: %s)", type(e).__name__, e)
        return None
