from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.assetflow.db.models import AssetKind, AssetStatus
from app.assetflow.schemas.common import MoneyValue, Pagination
from app.assetflow.schemas.movements import MovementResponse


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    brand_model: str | None
    category: str | None
    kind: AssetKind
    status: AssetStatus | None
    stock_quantity: int
    min_stock: int
    serial_number: str | None
    patrimony_tag: str | None
    barcode: str | None
    purchase_value: MoneyValue | None = Field(default=None, examples=["1499.90"])
    purchase_date: date | None
    warranty_expiry: date | None
    notes: str | None
    created_at: datetime
    updated_at: datetime | None


class AssetCreateRequest(BaseModel):
    name: str
    kind: AssetKind = AssetKind.UNIQUE
    status: AssetStatus | None = None
    stock_quantity: int = 0
    min_stock: int = 0
    brand_model: str | None = None
    category: str | None = None
    serial_number: str | None = None
    patrimony_tag: str | None = None
    barcode: str | None = None
    purchase_value: MoneyValue | None = None
    purchase_date: date | None = None
    warranty_expiry: date | None = None
    notes: str | None = None


class AssetUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    brand_model: str | None = None
    category: str | None = None
    serial_number: str | None = None
    patrimony_tag: str | None = None
    barcode: str | None = None
    min_stock: int | None = None
    purchase_value: MoneyValue | None = None
    purchase_date: date | None = None
    warranty_expiry: date | None = None
    notes: str | None = None


class AssetListResponse(BaseModel):
    assets: list[AssetResponse]
    pagination: Pagination


class LowStockResponse(BaseModel):
    assets: list[AssetResponse]


class StatusChangeRequest(BaseModel):
    status: AssetStatus
    technician: str
    notes: str


class StatusChangeResponse(BaseModel):
    movement_id: int
    asset: AssetResponse
    message: str = "Status updated"


class AddStockRequest(BaseModel):
    asset_id: UUID
    quantity: int
    technician: str
    unit_value: MoneyValue | None = None
    document: str | None = None
    supplier: str | None = None


class AddStockResponse(BaseModel):
    movement_id: int
    asset_id: UUID
    quantity: int
    previous_stock: int
    new_stock: int


class LocationResponse(BaseModel):
    asset_id: UUID
    store_id: UUID | None
    central_warehouse: bool
    in_transit: bool
    since: datetime | None
    movement_id: int | None


class HistoryEntryResponse(MovementResponse):
    days_in_location: int | None


class AssetHistoryResponse(BaseModel):
    asset: AssetResponse
    location: LocationResponse
    movements: list[HistoryEntryResponse]
    total_movements: int


class CustodyEntryResponse(MovementResponse):
    days_in_custody: int | None


class UnitHistoryResponse(BaseModel):
    asset_id: UUID
    store_id: UUID
    arrival_date: datetime | None
    days_in_unit: int | None
    movements: list[CustodyEntryResponse]
