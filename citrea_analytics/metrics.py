import logging
import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from citrea_analytics import config
from citrea_analytics.db import get_checkpoint
from citrea_analytics.helpers import scale_units

log = logging.getLogger(__name__)


# --------- output document ----------
class _Doc(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenVolume(_Doc):
    token: str
    total_amount: str
    normalized_amount: str
    swap_count: int

class VolumeByToken(_Doc):
    inbound: List[TokenVolume] = []
    outbound: List[TokenVolume] = []

class Caller(_Doc):
    addr: str
    count: int

class TokenPair(_Doc):
    token_in: str
    token_out: str
    swap_count: int
    volume_in: str
    volume_out: str

class DailyStat(_Doc):
    day: str
    tx: int
    unique_users: int
    swaps: int

class SwapRow(_Doc):
    tx_hash: str
    block_number: int
    sender: str
    amount_in: str
    amount_out: str
    token_in: str
    token_out: str
    destination: str
    timestamp: int

class Metrics(_Doc):
    unique_users: int
    unique_tx_count: int
    total_gas_used: str
    total_gas: str
    total_swaps: int
    volume_by_token: VolumeByToken
    top_callers: List[Caller]
    top_token_pairs: List[TokenPair]
    daily_stats: List[DailyStat]
    swap_events: List[SwapRow]
    last_scanned_block: Optional[int] = None
    computed_at: int

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


# --------- queries ----------
def _token_volumes(conn, side: str) -> List[TokenVolume]:
    # side is one of the two literal column prefixes, never user input
    rows = conn.execute(f"""
        SELECT token_{side} AS token, decimal_sum(amount_{side}) AS total, COUNT(*) AS cnt
        FROM swap_events
        GROUP BY token_{side}
        ORDER BY cnt DESC, token ASC
    """).fetchall()
    return [
        TokenVolume(
            token=r["token"],
            total_amount=r["total"],
            normalized_amount=scale_units(r["total"], config.TOKEN_DECIMALS),
            swap_count=r["cnt"],
        )
        for r in rows
    ]

def compute_metrics(conn, top_k: Optional[int] = None, recent_swaps: Optional[int] = None) -> Metrics:
    """
    Aggregate the cached rows into one :class:`Metrics` document.

    Everything is recomputed from the tables on each call. Top-N lists break
    count ties by address (or token pair) in ascending lexical order.
    """
    top_k = top_k or config.TOP_K
    recent_swaps = recent_swaps or config.RECENT_SWAPS

    unique_users = conn.execute("SELECT COUNT(DISTINCT from_address) FROM transactions").fetchone()[0]
    tx_count     = conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]
    total_gas    = conn.execute("SELECT COALESCE(decimal_sum(gas_used), '0') FROM transactions").fetchone()[0]
    total_swaps  = conn.execute("SELECT COUNT(*) FROM swap_events").fetchone()[0]

    top_callers = conn.execute("""
        SELECT from_address AS addr, COUNT(*) AS cnt
        FROM transactions
        GROUP BY from_address
        ORDER BY cnt DESC, addr ASC
        LIMIT ?
    """, (top_k,)).fetchall()

    top_pairs = conn.execute("""
        SELECT token_in, token_out, COUNT(*) AS cnt,
               decimal_sum(amount_in) AS volume_in,
               decimal_sum(amount_out) AS volume_out
        FROM swap_events
        GROUP BY token_in, token_out
        ORDER BY cnt DESC, token_in ASC, token_out ASC
        LIMIT ?
    """, (top_k,)).fetchall()

    daily = conn.execute("""
        SELECT strftime('%Y-%m-%d', t.timestamp, 'unixepoch') AS day,
               COUNT(DISTINCT t.tx_hash) AS tx,
               COUNT(DISTINCT t.from_address) AS unique_users,
               COUNT(DISTINCT s.tx_hash) AS swaps
        FROM transactions t
        LEFT JOIN swap_events s ON t.tx_hash = s.tx_hash
        GROUP BY day
        ORDER BY day DESC
    """).fetchall()

    swaps = conn.execute("""
        SELECT tx_hash, block_number, sender, amount_in, amount_out,
               token_in, token_out, destination, timestamp
        FROM swap_events
        ORDER BY block_number DESC, tx_hash ASC
        LIMIT ?
    """, (recent_swaps,)).fetchall()

    return Metrics(
        unique_users=unique_users,
        unique_tx_count=tx_count,
        total_gas_used=total_gas,
        total_gas=scale_units(total_gas, config.GAS_DECIMALS),
        total_swaps=total_swaps,
        volume_by_token=VolumeByToken(
            inbound=_token_volumes(conn, "in"),
            outbound=_token_volumes(conn, "out"),
        ),
        top_callers=[Caller(addr=r["addr"], count=r["cnt"]) for r in top_callers],
        top_token_pairs=[
            TokenPair(
                token_in=r["token_in"],
                token_out=r["token_out"],
                swap_count=r["cnt"],
                volume_in=scale_units(r["volume_in"], config.TOKEN_DECIMALS),
                volume_out=scale_units(r["volume_out"], config.TOKEN_DECIMALS),
            )
            for r in top_pairs
        ],
        daily_stats=[DailyStat(**dict(r)) for r in daily],
        swap_events=[SwapRow(**dict(r)) for r in swaps],
        last_scanned_block=get_checkpoint(conn),
        computed_at=int(time.time()),
    )

def log_summary(m: Metrics):
    log.info("[metrics] unique users: %d", m.unique_users)
    log.info("[metrics] total transactions: %d", m.unique_tx_count)
    log.info("[metrics] total swaps: %d", m.total_swaps)
    log.info("[metrics] total gas: %s", m.total_gas)
    for i, v in enumerate(m.volume_by_token.inbound[:3], 1):
        log.info("[metrics] inbound #%d %s... amount=%s swaps=%d", i, v.token[:10], v.normalized_amount, v.swap_count)
    if m.top_token_pairs:
        p = m.top_token_pairs[0]
        log.info("[metrics] top pair %s... -> %s... (%d swaps)", p.token_in[:8], p.token_out[:8], p.swap_count)
