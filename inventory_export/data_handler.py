import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from . import settings
from .exceptions import ExportNotFoundError
from .schemas import ReportRow
from .utils import safe_base

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = list(settings.DEFAULT_COLUMNS)

# Download encoding selector -> (Python codec, charset in the Content-Type header)
ENCODINGS = {
    "utf8": ("utf-8", "utf-8"),
    "utf-8": ("utf-8", "utf-8"),
    "win1251": ("cp1251", "windows-1251"),
    "windows-1251": ("cp1251", "windows-1251"),
}

CONTENT_TYPES = {"csv": "text/csv", "xml": "application/xml"}


def resolve_columns(columns: Optional[Sequence[str]] = None) -> list[str]:
    """
    Returns the caller's column selection, or the default set when none is given.
    Unknown names are rejected rather than emitted as empty columns.
    """
    if not columns:
        return list(DEFAULT_COLUMNS)

    unknown = [c for c in columns if c not in ReportRow.model_fields]
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(unknown)}")
    return list(columns)


def rows_to_frame(rows: Sequence[ReportRow], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Builds the export DataFrame with exactly `columns`, in order.
    dtype=object keeps integers as integers next to nulls and Decimals as written.
    """
    fields = resolve_columns(columns)
    records = [row.model_dump(include=set(fields)) for row in rows]
    return pd.DataFrame(records, columns=fields, dtype=object)


def _codec(encoding: str) -> tuple[str, str]:
    try:
        return ENCODINGS[encoding.lower()]
    except KeyError:
        raise ValueError(f"Unsupported encoding: {encoding}") from None


def csv_text(rows: Sequence[ReportRow], columns: Optional[Sequence[str]] = None) -> str:
    return rows_to_frame(rows, columns).to_csv(index=False, na_rep="", lineterminator="\n")


def xml_body(rows: Sequence[ReportRow], columns: Optional[Sequence[str]] = None) -> str:
    """Renders <report><row>...</row></report> without a declaration. Nulls become empty elements."""
    body = rows_to_frame(rows, columns).to_xml(
        index=False,
        root_name="report",
        row_name="row",
        na_rep="",
        xml_declaration=False,
        pretty_print=True,
        parser="etree",
    )
    return _strip_declaration(body)


def to_csv(rows: Sequence[ReportRow], columns: Optional[Sequence[str]] = None, encoding: str = "utf8") -> bytes:
    """Renders the rows as CSV. UTF-8 output carries a BOM so Excel detects it."""
    return encode_csv(csv_text(rows, columns), encoding)


def to_xml(rows: Sequence[ReportRow], columns: Optional[Sequence[str]] = None, encoding: str = "utf8") -> bytes:
    return encode_xml(xml_body(rows, columns), encoding)


def encode_csv(text: str, encoding: str = "utf8") -> bytes:
    codec, _ = _codec(encoding)
    if codec == "utf-8":
        return ("\ufeff" + text).encode("utf-8")
    return text.encode(codec, errors="replace")


def encode_xml(body: str, encoding: str = "utf8") -> bytes:
    """Prefixes an XML declaration naming the target charset and encodes the document."""
    codec, charset = _codec(encoding)
    declaration = f'<?xml version="1.0" encoding="{charset}"?>\n'
    return (declaration + body.strip() + "\n").encode(codec, errors="replace")


def _strip_declaration(xml_text: str) -> str:
    if xml_text.startswith("<?xml"):
        return xml_text.split("\n", 1)[1] if "\n" in xml_text else ""
    return xml_text


def save_exports(
    rows: Sequence[ReportRow],
    base: str,
    columns: Optional[Sequence[str]] = None,
    export_dir: Path | None = None,
) -> str:
    """Saves the report as {base}.csv and {base}.xml (UTF-8) and returns the base."""
    export_dir = Path(export_dir) if export_dir is not None else settings.EXPORT_DIR
    export_dir.mkdir(parents=True, exist_ok=True)
    base = safe_base(base)

    csv_path = export_dir / f"{base}.csv"
    xml_path = export_dir / f"{base}.xml"

    # Stored as plain UTF-8; load_export() adds the BOM or transcodes on download.
    csv_path.write_text(csv_text(rows, columns), encoding="utf-8", newline="")
    logger.info(f"✅ CSV saved to: {csv_path} (bytes={csv_path.stat().st_size})")

    xml_path.write_bytes(encode_xml(xml_body(rows, columns), "utf8"))
    logger.info(f"✅ XML saved to: {xml_path} (bytes={xml_path.stat().st_size})")

    return base


def download_links(base: str) -> dict[str, str]:
    return {
        "csv": f"/download/csv/{base}?enc=utf8",
        "xml": f"/download/xml/{base}?enc=utf8",
        "csv_win1251": f"/download/csv/{base}?enc=win1251",
        "xml_win1251": f"/download/xml/{base}?enc=win1251",
    }


def load_export(
    kind: str, base: str, encoding: str = "utf8", export_dir: Path | None = None
) -> tuple[bytes, str]:
    """
    Reads a saved export and renders it in the requested encoding.
    Returns (body, content_type). Raises ExportNotFoundError for unknown exports.
    """
    if kind not in CONTENT_TYPES:
        raise ExportNotFoundError(f"Unknown export type: {kind}")

    export_dir = Path(export_dir) if export_dir is not None else settings.EXPORT_DIR
    base = safe_base(base)
    path = export_dir / f"{base}.{kind}"
    if not base or not path.is_file():
        logger.warning(f"⚠️ {kind.upper()} not found: {path}")
        raise ExportNotFoundError(f"File not found: {base}.{kind}")

    _, charset = _codec(encoding)
    text = path.read_bytes().decode("utf-8")
    if kind == "csv":
        body = encode_csv(text, encoding)
    else:
        body = encode_xml(_strip_declaration(text), encoding)

    logger.info(f"Download {kind.upper()} base={base} enc={encoding} bytes={len(body)}")
    return body, f"{CONTENT_TYPES[kind]}; charset={charset}"
