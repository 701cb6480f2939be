"""Inspect or clear the local scan cache."""

import argparse
import logging
import sys

from citrea_analytics import config
from citrea_analytics.db import db, ensure_schema, get_checkpoint, reset, row_counts
from citrea_analytics.logging_config import configure_logging

log = logging.getLogger(__name__)


def check(conn):
    counts = row_counts(conn)
    last = get_checkpoint(conn)
    log.info("[db] file: %s", config.DB_PATH)
    log.info("[db] transactions: %d", counts["transactions"])
    log.info("[db] swap events: %d", counts["swap_events"])
    log.info("[db] last scanned block: %s", "none" if last is None else last)
    return {"lastScannedBlock": last, **counts}

def main(argv=None) -> int:
    configure_logging(config.LOG_LEVEL)
    parser = argparse.ArgumentParser(prog="citrea-analytics-db", description=__doc__)
    parser.add_argument("command", choices=["check", "reset"])
    args = parser.parse_args(argv)

    conn = db()
    try:
        ensure_schema(conn)
        if args.command == "reset":
            reset(conn)
            log.info("[db] cleared cached rows and checkpoint")
        check(conn)
    except Exception:
        log.exception("[db] %s failed", args.command)
        return 1
    finally:
        conn.close()
    return 0

if __name__ == "__main__":
    sys.exit(main())
