"""
Creates an inventory snapshot.

    python update_snapshot.py                 # label = today in TIMEZONE
    python update_snapshot.py --label 2024-05-01
    python update_snapshot.py --scheduled     # for cron; skips days that are not due

The cron entry is expected to fire at SNAPSHOT_TIME (11:59:59 by default) in
TIMEZONE every day; --scheduled decides whether today is a snapshot day.
"""

import argparse
import logging
import sys

from inventory_export.handlers import handle_snapshot_request
from inventory_export.logger import setup_logger
from inventory_export.schedule import run_scheduled_snapshot

logger = logging.getLogger(__name__)


def run_snapshot_update(argv=None) -> int:
    setup_logger()
    parser = argparse.ArgumentParser(description="Capture quantity on hand per variant under a label.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--label", help="Snapshot label (default: today's date in TIMEZONE)")
    group.add_argument("--scheduled", action="store_true", help="Only run on scheduled snapshot days")
    args = parser.parse_args(argv)

    if args.scheduled:
        try:
            run_scheduled_snapshot()
        except Exception:
            logger.exception("❌ [CRON] scheduled snapshot failed")
            return 1
        return 0

    status, payload = handle_snapshot_request({"label": args.label})
    if not payload["ok"]:
        logger.error(f"❌ Snapshot failed ({status}): {payload['error']}")
        return 1

    logger.info(f"✅ Snapshot {payload['label']} saved ({payload['count']} variants) -> {payload['path']}")
    return 0


if __name__ == "__main__":
    sys.exit(run_snapshot_update())
