import logging
from datetime import date
from typing import Optional

from inventory_export import settings, utils
from inventory_export.pipelines.snapshot import create_snapshot
from inventory_export.schemas import SnapshotResult
from inventory_export.shopify_client import ShopifyClient
from inventory_export.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def is_snapshot_day(day: date, days: Optional[list[int]] = None) -> bool:
    """Snapshots are due on the configured days of the month and on the month's last day."""
    days = settings.SNAPSHOT_DAYS if days is None else days
    return day.day in days or utils.is_last_day_of_month(day)


def run_scheduled_snapshot(
    today: Optional[date] = None,
    client: Optional[ShopifyClient] = None,
    store: Optional[SnapshotStore] = None,
) -> Optional[SnapshotResult]:
    """
    Single-shot trigger for the external scheduler. Returns None when today is
    not a snapshot day. Overlapping runs are not coordinated; the later write wins.
    """
    today = today or utils.today_in_timezone(settings.TIMEZONE)
    label = today.isoformat()

    if not is_snapshot_day(today):
        logger.info(f"[CRON] skipped, {label} is not a snapshot day")
        return None

    logger.info(f"[CRON] firing for {label}")
    result = create_snapshot(label, client=client, store=store)
    logger.info(f"[CRON] done for {label} (variants={result.count})")
    return result
