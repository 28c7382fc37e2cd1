import argparse
import json
import logging
import sys

from inventory_export import settings, utils
from inventory_export.handlers import handle_report_request
from inventory_export.logger import setup_logger

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the inventory movement report (CSV + XML) for a date window."
    )
    parser.add_argument("--since", required=True, help="Window start, ISO-8601 (only the date is used)")
    parser.add_argument("--until", help="Window end, ISO-8601 (default: today in TIMEZONE)")
    parser.add_argument("--start-snapshot", dest="start_snapshot_label", help="Snapshot label for starting quantities")
    parser.add_argument(
        "--columns",
        help=f"Comma-separated column subset, in order. Default: {','.join(settings.DEFAULT_COLUMNS)}",
    )
    return parser.parse_args(argv)


def run_process(argv=None) -> int:
    """Main orchestration function to run the report from the command line."""
    setup_logger()
    args = parse_args(argv)

    body = {
        "since": args.since,
        "until": args.until or utils.label_for_today(settings.TIMEZONE),
        "startSnapshotLabel": args.start_snapshot_label,
        "columns": [c.strip() for c in args.columns.split(",") if c.strip()] if args.columns else None,
    }
    status, payload = handle_report_request(body)

    if not payload["ok"]:
        logger.error(f"❌ Report failed ({status}): {payload['error']}")
        return 1

    logger.info("\n--- Report Summary ---")
    logger.info(f"Rows: {payload['rows']}")
    logger.info(f"CSV: {payload['csv']}  (windows-1251: {payload['csv_win1251']})")
    logger.info(f"XML: {payload['xml']}  (windows-1251: {payload['xml_win1251']})")
    logger.info(f"Files are in {settings.EXPORT_DIR}")
    logger.info(json.dumps(payload["sample"][:5], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(run_process())
