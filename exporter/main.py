#!/usr/bin/env python3
"""
Miner exporter entry point.

Wires: settings → Lotus client → pinned chain reference → scheduler thread
→ Flask exposition (``/json``, ``/metrics``).

Usage:
    miner-exporter -m f01234 [-i 60] [-t 0] [-p 9002]

Environment variables (see ``config.py``) supply the same values; flags win.
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from api.client import ChainQueryError, LotusAPIClient
from config import load_settings
from exporter.aggregator import SnapshotAggregator, resolve_reference
from exporter.scheduler import Scheduler
from server.app import create_app
from storage.snapshot_store import SnapshotStore

logger = logging.getLogger("exporter")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export Filecoin miner power and balances")
    parser.add_argument("-m", "--miner", dest="MINER_ID", help="Miner ID, required!")
    parser.add_argument("-i", "--interval", dest="REFRESH_INTERVAL", type=float,
                        help="Interval of refreshing miner info, seconds (default 60)")
    parser.add_argument("-t", "--height", dest="TARGET_HEIGHT", type=int,
                        help="Target height, default latest")
    parser.add_argument("-p", "--port", dest="PORT", type=int, help="Port, default 9002")
    parser.add_argument("--rpc-url", dest="LOTUS_RPC_URL", help="Lotus JSON-RPC endpoint")
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv=None):
    args = parse_args(argv)
    try:
        settings = load_settings(**vars(args))
    except ValidationError as e:
        configure_logging("INFO")
        logger.error("Invalid configuration:\n%s", e)
        sys.exit(1)

    configure_logging(settings.LOG_LEVEL)
    logger.info("get miner %s's info", settings.MINER_ID)

    client = LotusAPIClient(
        base_url=settings.LOTUS_RPC_URL,
        timeout=settings.RPC_TIMEOUT,
        token=settings.LOTUS_API_TOKEN,
        max_tries=settings.RPC_MAX_TRIES,
    )
    target = None if settings.follows_head else settings.TARGET_HEIGHT
    try:
        reference = resolve_reference(client, target)
    except ChainQueryError as e:
        logger.error("wrong height: %s", e)
        client.close()
        sys.exit(1)

    store = SnapshotStore()
    scheduler = Scheduler(
        aggregator=SnapshotAggregator(client, settings.MINER_ID, reference),
        store=store,
        interval=settings.REFRESH_INTERVAL,
    )
    scheduler.start()

    app = create_app(store)
    logger.info("listen on %s:%d", settings.HOST, settings.PORT)
    try:
        app.run(host=settings.HOST, port=settings.PORT, debug=False, threaded=True)
    finally:
        scheduler.stop()
        client.close()


if __name__ == "__main__":
    main()
