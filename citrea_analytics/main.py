import argparse
import logging
import sys

import uvloop
from web3 import AsyncHTTPProvider, AsyncWeb3

from citrea_analytics import config
from citrea_analytics.db import db, ensure_schema
from citrea_analytics.indexer import scan_logs
from citrea_analytics.logging_config import configure_logging
from citrea_analytics.metrics import compute_metrics, log_summary
from citrea_analytics.server import export_metrics, serve

log = logging.getLogger(__name__)


def _flag(value: str) -> bool:
    return value.lower() == "true"

def parse_args(argv=None) -> argparse.Namespace:
    # a flag given without a value keeps its default; only -h exits early
    parser = argparse.ArgumentParser(
        prog="citrea-analytics",
        description="Scan a contract's logs into a local cache and report usage metrics.",
        allow_abbrev=False,
    )
    parser.add_argument("--address", nargs="?", const=config.DEFAULT_CONTRACT, default=config.DEFAULT_CONTRACT,
                        help="contract to scan")
    parser.add_argument("--incremental", nargs="?", type=_flag, const=False, default=False, metavar="true|false",
                        help="resume from the last checkpoint")
    parser.add_argument("--serve", nargs="?", type=_flag, const=False, default=False, metavar="true|false",
                        help="serve GET /metrics after the scan")
    parser.add_argument("--export", nargs="?", const=None, default=None, metavar="PATH",
                        help="write metrics JSON to PATH")
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        log.debug("[cli] ignoring unrecognized arguments: %s", " ".join(unknown))
    return args

async def check_chain(w3):
    chain_id = await w3.eth.chain_id
    if int(chain_id) != config.CHAIN_ID:
        log.warning("[cli] connected to chain %s, expected %d", chain_id, config.CHAIN_ID)
    return chain_id

async def main(args: argparse.Namespace, w3=None, conn=None) -> int:
    log.info("[cli] contract=%s incremental=%s serve=%s export=%s",
             args.address, args.incremental, args.serve, args.export)

    if w3 is None:
        w3 = AsyncWeb3(AsyncHTTPProvider(config.RPC_URL))
    if conn is None:
        conn = db()
    try:
        ensure_schema(conn)
        await check_chain(w3)
        await scan_logs(conn, w3, args.address, args.incremental)

        metrics = compute_metrics(conn)
        log_summary(metrics)

        if args.export:
            export_metrics(metrics, args.export)

        if args.serve:
            await serve(conn)
    except Exception:
        log.exception("[cli] fatal error")
        return 1
    finally:
        conn.close()
    return 0

def run(argv=None):
    configure_logging(config.LOG_LEVEL)
    args = parse_args(argv)
    sys.exit(uvloop.run(main(args)))

if __name__ == "__main__":
    run()
