import asyncio
import dataclasses
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from citrea_analytics import config
from citrea_analytics.db import (
    get_checkpoint, insert_swap_event, insert_tx_record, set_checkpoint, transaction
)
from citrea_analytics.decoder import decode_swap
from citrea_analytics.fetcher import fetch_block, fetch_logs, fetch_receipt
from citrea_analytics.helpers import hex_to_int, to_hex
from citrea_analytics.models import SwapEvent, TransactionRecord

log = logging.getLogger(__name__)


class ScanState(enum.Enum):
    IDLE = "idle"
    RESOLVING_RANGE = "resolving_range"
    FETCHING_BATCH = "fetching_batch"
    ENRICHING_BATCH = "enriching_batch"
    PERSISTING_BATCH = "persisting_batch"
    CHECKPOINTING = "checkpointing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ScanResult:
    from_block: int = 0
    to_block: int = 0
    windows: int = 0
    logs_seen: int = 0
    tx_inserted: int = 0
    swaps_inserted: int = 0
    skipped: List[Tuple[Optional[str], str]] = field(default_factory=list)
    up_to_date: bool = False
    state: ScanState = ScanState.IDLE


# ---------- range ----------
def iter_windows(start: int, end: int, size: int) -> Iterator[Tuple[int, int]]:
    """Ascending, inclusive ``(from, to)`` windows tiling ``[start, end]``."""
    if size < 1:
        raise ValueError(f"window size must be >= 1, got {size}")
    cur = start
    while cur <= end:
        upper = min(cur + size - 1, end)
        yield cur, upper
        cur = upper + 1

def resolve_start(conn, incremental: bool) -> int:
    if not incremental:
        log.info("[scan] full scan mode - scanning from genesis")
        return 0
    last = get_checkpoint(conn)
    if last is None:
        log.info("[scan] no checkpoint yet - falling back to a full scan")
        return 0
    log.info("[scan] resuming from block %d", last + 1)
    return last + 1

# ---------- enrichment ----------
async def enrich_log(w3, lg) -> Tuple[TransactionRecord, Optional[SwapEvent]]:
    txh = to_hex(lg["transactionHash"]).lower()
    block_number = hex_to_int(lg["blockNumber"])
    receipt, block = await asyncio.gather(
        fetch_receipt(w3, txh),
        fetch_block(w3, block_number),
    )
    ts = int(block["timestamp"])
    rec = TransactionRecord(
        tx_hash=txh,
        block_number=block_number,
        from_address=str(receipt["from"]).lower(),
        gas_used=str(int(receipt["gasUsed"])),
        timestamp=ts,
    )
    ev = decode_swap(lg)
    if ev is not None:
        ev = dataclasses.replace(ev, timestamp=ts)
    return rec, ev

async def enrich_window(w3, logs, result: ScanResult, concurrency: int):
    sem = asyncio.Semaphore(max(1, concurrency))

    async def task(lg):
        async with sem:
            try:
                return await enrich_log(w3, lg)
            except Exception as e:
                txh = to_hex(lg.get("transactionHash"))
                log.warning("[scan] skipping log in tx %s: %s", txh, e)
                result.skipped.append((txh, str(e)))
                return None

    pending = [lg for lg in logs if lg.get("transactionHash") is None]
    for lg in pending:
        log.debug("[scan] skipping log without tx hash at block %s", lg.get("blockNumber"))
        result.skipped.append((None, "missing transactionHash"))

    pairs = await asyncio.gather(*[task(lg) for lg in logs if lg.get("transactionHash") is not None])
    return [p for p in pairs if p is not None]

def persist_window(conn, pairs) -> Tuple[int, int]:
    tx_new, swaps_new = 0, 0
    with transaction(conn):
        for rec, ev in pairs:
            tx_new += insert_tx_record(conn, rec)
            if ev is not None:
                swaps_new += insert_swap_event(conn, ev)
    return tx_new, swaps_new

# ---------- scan ----------
async def scan_logs(conn, w3, address: str, incremental: bool = False, *,
                    batch_size: Optional[int] = None,
                    max_retries: Optional[int] = None,
                    retry_delay: Optional[float] = None,
                    confirmations: Optional[int] = None,
                    concurrency: Optional[int] = None) -> ScanResult:
    batch_size = batch_size or config.BATCH_SIZE
    confirmations = config.CONFIRMS if confirmations is None else confirmations
    concurrency = concurrency or config.ENRICH_CONCURRENCY

    result = ScanResult(state=ScanState.RESOLVING_RANGE)
    head = await w3.eth.block_number
    latest = max(0, int(head) - confirmations)
    start = resolve_start(conn, incremental)
    result.from_block, result.to_block = start, latest

    if start > latest:
        log.info("[scan] already up to date (next=%d, head=%d)", start, latest)
        result.up_to_date = True
        result.state = ScanState.DONE
        return result

    log.info("[scan] scanning blocks %d -> %d for %s", start, latest, address)
    t0 = time.monotonic()
    span = max(1, latest - start)
    lo, hi = start, start
    try:
        for lo, hi in iter_windows(start, latest, batch_size):
            result.state = ScanState.FETCHING_BATCH
            logs = await fetch_logs(w3, address, lo, hi, max_retries, retry_delay)

            result.state = ScanState.ENRICHING_BATCH
            pairs = await enrich_window(w3, logs, result, concurrency) if logs else []

            result.state = ScanState.PERSISTING_BATCH
            tx_new, swaps_new = persist_window(conn, pairs) if pairs else (0, 0)

            result.windows += 1
            result.logs_seen += len(logs)
            result.tx_inserted += tx_new
            result.swaps_inserted += swaps_new
            pct = 100.0 if latest == start else (hi - start) * 100.0 / span
            log.info("[scan] block %d | %d logs | %d swaps | %.1f%% complete",
                     hi, len(logs), result.swaps_inserted, pct)

        result.state = ScanState.CHECKPOINTING
        previous = get_checkpoint(conn)
        if previous is not None and previous > latest:
            log.warning("[scan] head %d is behind checkpoint %d; keeping checkpoint", latest, previous)
        else:
            set_checkpoint(conn, latest)
    except Exception as e:
        result.state = ScanState.FAILED
        log.error("[scan] failed in blocks %d-%d: %s", lo, hi, e)
        raise

    result.state = ScanState.DONE
    log.info("[scan] complete in %.1fs: %d logs, %d new txs, %d new swaps, %d skipped",
             time.monotonic() - t0, result.logs_seen, result.tx_inserted,
             result.swaps_inserted, len(result.skipped))
    return result
