import asyncio
import logging
from typing import Optional

from web3 import AsyncWeb3

from citrea_analytics import config

log = logging.getLogger(__name__)


# ---------- light wrappers ----------
async def fetch_block(w3, num):
    return await w3.eth.get_block(block_identifier=num, full_transactions=False)

async def fetch_receipt(w3, tx_hash):
    return await w3.eth.get_transaction_receipt(tx_hash)

# ---------- logs ----------
async def fetch_logs(w3, address: str, from_block: int, to_block: int,
                     max_retries: Optional[int] = None, base_delay: Optional[float] = None):
    """
    ``eth_getLogs`` for one contract over ``[from_block, to_block]``.

    Failed calls are retried up to ``max_retries`` times, sleeping
    ``base_delay * attempt`` seconds before each retry. The last error is
    re-raised once retries are exhausted.
    """
    max_retries = config.MAX_RETRIES if max_retries is None else max_retries
    base_delay = config.RETRY_DELAY_S if base_delay is None else base_delay
    params = {
        "fromBlock": from_block,
        "toBlock": to_block,
        "address": AsyncWeb3.to_checksum_address(address),
    }

    attempt = 0
    while True:
        try:
            return list(await w3.eth.get_logs(params))
        except Exception as e:
            if attempt >= max_retries:
                log.error("[fetch] get_logs %d-%d failed after %d retries: %s",
                          from_block, to_block, max_retries, e)
                raise
            attempt += 1
            log.warning("[fetch] RPC error on %d-%d, retrying (%d/%d): %s",
                        from_block, to_block, attempt, max_retries, e)
            await asyncio.sleep(base_delay * attempt)
