"""
Request handlers for the snapshot, report and download endpoints.

Each handler takes the already-decoded request and returns (status_code,
payload) so any web framework can mount it. Failures always come back as
{"ok": False, "error": ...}; nothing is turned into an empty report.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from inventory_export import data_handler, settings, utils
from inventory_export.exceptions import ExportNotFoundError
from inventory_export.pipelines.report import ReportPipeline
from inventory_export.pipelines.snapshot import create_snapshot
from inventory_export.schemas import ReportRequest, SnapshotRequest
from inventory_export.shopify_client import ShopifyClient
from inventory_export.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def _failure(status: int, error: str) -> tuple[int, dict[str, Any]]:
    return status, {"ok": False, "error": error}


def handle_health() -> tuple[int, dict[str, Any]]:
    return 200, {"ok": True}


def handle_snapshot_request(
    body: Optional[dict[str, Any]],
    client: Optional[ShopifyClient] = None,
    store: Optional[SnapshotStore] = None,
) -> tuple[int, dict[str, Any]]:
    """POST /snapshot {label?} -> {ok, label, count, path}"""
    logger.info(f"[EP/snapshot] body={body}")
    try:
        request = SnapshotRequest.model_validate(body or {})
    except ValidationError as e:
        return _failure(400, f"Invalid snapshot request: {e}")

    label = request.label or utils.label_for_today(settings.TIMEZONE)
    try:
        result = create_snapshot(label, client=client, store=store)
    except Exception as e:
        logger.exception(f"❌ Snapshot '{label}' failed")
        return _failure(500, str(e))

    return 200, {"ok": True, "label": result.label, "count": result.count, "path": result.file}


def _describe_validation_error(e: ValidationError) -> str:
    missing = [str(err["loc"][0]) for err in e.errors() if err["type"] == "missing"]
    if {"since", "until"} & set(missing):
        return "Missing since/until (ISO)"
    return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())


def handle_report_request(
    body: Optional[dict[str, Any]],
    client: Optional[ShopifyClient] = None,
    store: Optional[SnapshotStore] = None,
    export_dir: Optional[Path] = None,
) -> tuple[int, dict[str, Any]]:
    """
    POST /report {since, until, startSnapshotLabel?, columns?}
      -> {ok, rows, csv, xml, csv_win1251, xml_win1251, columns?, sample}
    """
    logger.info(f"[EP/report] body={body}")
    try:
        request = ReportRequest.model_validate(body or {})
        columns = data_handler.resolve_columns(request.columns)
    except ValidationError as e:
        logger.warning(f"[EP/report] rejected: {e}")
        return _failure(400, _describe_validation_error(e))
    except ValueError as e:
        logger.warning(f"[EP/report] rejected: {e}")
        return _failure(400, str(e))

    try:
        pipeline = ReportPipeline(
            since=request.since,
            until=request.until,
            start_snapshot_label=request.start_snapshot_label,
            columns=columns,
            client=client,
            store=store,
            export_dir=export_dir,
        )
        output = pipeline.run()
    except Exception as e:
        logger.exception("❌ Report failed")
        return _failure(500, str(e))

    payload: dict[str, Any] = {
        "ok": True,
        "rows": len(output.rows),
        **data_handler.download_links(output.base),
        "sample": [row.model_dump(mode="json") for row in output.rows[: settings.REPORT_SAMPLE_SIZE]],
    }
    if request.columns:
        payload["columns"] = output.columns
    logger.info(f"[REPORT] Done. files={{csv: {payload['csv']}, xml: {payload['xml']}}}")
    return 200, payload


def handle_download(
    kind: str, base: str, enc: Optional[str] = None, export_dir: Optional[Path] = None
) -> tuple[int, bytes, str]:
    """GET /download/{kind}/{base}?enc=utf8|win1251 -> (status, body, content_type)"""
    try:
        body, content_type = data_handler.load_export(kind, base, enc or "utf8", export_dir=export_dir)
    except ExportNotFoundError:
        return 404, b"File not found", "text/plain; charset=utf-8"
    except ValueError as e:
        return 400, str(e).encode("utf-8"), "text/plain; charset=utf-8"
    return 200, body, content_type
