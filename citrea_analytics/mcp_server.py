# mcp_server.py
import logging
import sqlite3
from typing import Any, Dict, Optional

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from citrea_analytics import __version__, config
from citrea_analytics.db import db, get_checkpoint, row_counts
from citrea_analytics.logging_config import configure_logging
from citrea_analytics.metrics import compute_metrics

log = logging.getLogger(__name__)

mcp = FastMCP("citrea-analytics-mcp", version=__version__)

_conn: Optional[sqlite3.Connection] = None

def get_conn() -> sqlite3.Connection:
    global _conn
    if _conn is None:
        _conn = db(config.DB_PATH, readonly=True)
    return _conn

def row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {k: row[k] for k in row.keys()}

# --------- Pydantic input models ----------
class LimitIn(BaseModel):
    limit: int = Field(10, ge=1, le=500)

# ----------------- Tools ------------------
def metrics_summary() -> dict:
    """Aggregated usage metrics for the scanned contract (same document as GET /metrics)."""
    try:
        return compute_metrics(get_conn()).model_dump(mode="json", by_alias=True)
    except Exception as e:
        log.exception("[mcp] failed to calculate metrics")
        return {"error": f"Failed to calculate metrics: {e}"}

def scan_status() -> dict:
    """Last scanned block and cached row counts."""
    try:
        conn = get_conn()
        counts = row_counts(conn)
        return {"lastScannedBlock": get_checkpoint(conn), **counts}
    except sqlite3.Error as e:
        return {"error": str(e)}

def top_callers(args: LimitIn) -> list:
    """Top senders by transaction count (ties broken by address)."""
    rows = get_conn().execute("""
        SELECT from_address AS addr, COUNT(*) AS cnt
        FROM transactions
        GROUP BY from_address
        ORDER BY cnt DESC, addr ASC
        LIMIT ?
    """, (args.limit,)).fetchall()
    return [{"addr": r["addr"], "count": r["cnt"]} for r in rows]

def recent_swaps(args: LimitIn) -> list:
    """Most recent decoded swaps, newest block first."""
    rows = get_conn().execute("""
        SELECT tx_hash, block_number, sender, amount_in, amount_out,
               token_in, token_out, destination, timestamp
        FROM swap_events
        ORDER BY block_number DESC, tx_hash ASC
        LIMIT ?
    """, (args.limit,)).fetchall()
    return [row_to_dict(r) for r in rows]

mcp.tool(name="metrics_summary")(metrics_summary)
mcp.tool(name="scan_status")(scan_status)
mcp.tool(name="top_callers")(top_callers)
mcp.tool(name="recent_swaps")(recent_swaps)

def main():
    configure_logging(config.LOG_LEVEL)
    log.info("[mcp] serving %s on %s:%d", config.DB_PATH, config.MCP_HOST, config.MCP_PORT)
    mcp.run(transport="http", host=config.MCP_HOST, port=config.MCP_PORT)

if __name__ == "__main__":
    main()
