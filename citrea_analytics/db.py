import logging
import pathlib
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from citrea_analytics import config
from citrea_analytics.models import SwapEvent, TransactionRecord

log = logging.getLogger(__name__)

SCHEMA_PATH = pathlib.Path(__file__).with_name("schema.sql")


class DecimalSum:
    """SQLite aggregate summing decimal-text integers without float rounding."""

    def __init__(self):
        self.total = 0

    def step(self, value):
        if value is not None:
            self.total += int(value)

    def finalize(self):
        return str(self.total)


def db(path: Optional[str] = None, readonly: bool = False) -> sqlite3.Connection:
    path = path or config.DB_PATH
    if readonly:
        conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True, isolation_level=None, check_same_thread=False)
    else:
        conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    conn.row_factory = sqlite3.Row
    conn.create_aggregate("decimal_sum", 1, DecimalSum)
    return conn

def ensure_schema(conn: sqlite3.Connection):
    conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    log.debug("[db] schema ready")

@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """All-or-nothing block on an autocommit connection."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")

# ---------- checkpoint store ----------
def get_meta(conn, key, default=None):
    row = conn.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
    return row[0] if row else default

def set_meta(conn, key, value):
    conn.execute("INSERT INTO meta(key,value) VALUES(?,?) ON CONFLICT(key) DO UPDATE SET value=excluded.value;", (key, str(value)))

def get_checkpoint(conn) -> Optional[int]:
    value = get_meta(conn, config.CHECKPOINT_KEY)
    return int(value) if value is not None else None

def set_checkpoint(conn, block: int):
    set_meta(conn, config.CHECKPOINT_KEY, int(block))

# ---------- rows ----------
def insert_tx_record(conn, rec: TransactionRecord) -> bool:
    cur = conn.execute("""
        INSERT OR IGNORE INTO transactions (tx_hash, block_number, from_address, gas_used, timestamp)
        VALUES (?,?,?,?,?)
    """, (rec.tx_hash, rec.block_number, rec.from_address, rec.gas_used, rec.timestamp))
    return cur.rowcount == 1

def insert_swap_event(conn, ev: SwapEvent) -> bool:
    cur = conn.execute("""
        INSERT OR IGNORE INTO swap_events
        (tx_hash, block_number, sender, amount_in, amount_out, token_in, token_out, destination, timestamp)
        VALUES (?,?,?,?,?,?,?,?,?)
    """, (
        ev.tx_hash, ev.block_number, ev.sender, ev.amount_in, ev.amount_out,
        ev.token_in, ev.token_out, ev.destination, ev.timestamp
    ))
    return cur.rowcount == 1

def row_counts(conn) -> dict:
    return {
        "transactions": conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0],
        "swap_events": conn.execute("SELECT COUNT(*) FROM swap_events").fetchone()[0],
    }

def reset(conn):
    with transaction(conn):
        conn.execute("DELETE FROM swap_events")
        conn.execute("DELETE FROM transactions")
        conn.execute("DELETE FROM meta WHERE key=?", (config.CHECKPOINT_KEY,))
