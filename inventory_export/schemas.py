from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, TypeAlias
from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class ByVariantId:
    """Join key for a line item or catalog variant that carries a variant id."""

    variant_id: str

    def __str__(self) -> str:
        return self.variant_id


@dataclass(frozen=True)
class BySku:
    """Fallback join key when the variant reference is gone but the SKU survives."""

    sku: str

    def __str__(self) -> str:
        return f"SKU:{self.sku}"


JoinKey: TypeAlias = ByVariantId | BySku
SalesAggregate: TypeAlias = dict[JoinKey, int]
SnapshotQuantities: TypeAlias = dict[str, int]


class VariantRecord(BaseModel):
    """
    One tracked variant as fetched from the catalog, with its quantity on hand
    summed across every inventory location.
    """

    model_config = ConfigDict(frozen=True)

    product_id: Optional[str] = None
    product_title: Optional[str] = None
    vendor: Optional[str] = None
    vendor_invoice_date: Optional[str] = None
    vendor_invoice_number: Optional[str] = None
    variant_id: Optional[str] = None
    sku: Optional[str] = None
    unit_cost: Optional[Decimal] = None
    unit_cost_currency: Optional[str] = None
    ending_qty: int = 0


class ReportRow(BaseModel):
    """
    Defines the data contract for a single row in the exported report.
    Field order is the default column order of the CSV and XML exports.
    """

    vendor: Optional[str] = None
    vendor_invoice_date: Optional[str] = None
    vendor_invoice_number: Optional[str] = None
    product_title: Optional[str] = None
    product_variant_sku: Optional[str] = None
    unit_cost: Optional[Decimal] = None
    unit_cost_currency: Optional[str] = None
    # None means "no snapshot", "snapshot not found" or "variant not in snapshot".
    starting_inventory_qty: Optional[int] = None
    ending_inventory_qty: int = 0
    units_sold: int = Field(default=0, ge=0)


class ReportRequest(BaseModel):
    """Body of a report request. Accepts the camelCase keys the UI sends."""

    model_config = ConfigDict(populate_by_name=True)

    since: datetime
    until: datetime
    start_snapshot_label: Optional[str] = Field(default=None, alias="startSnapshotLabel")
    columns: Optional[list[str]] = None

    @field_validator("start_snapshot_label")
    @classmethod
    def blank_label_means_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class SnapshotRequest(BaseModel):
    label: Optional[str] = None


class SnapshotResult(BaseModel):
    label: str
    count: int
    file: str
