from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.assetflow.schemas.assets import AssetResponse
from app.assetflow.schemas.common import MoneyValue, Pagination
from app.assetflow.schemas.movements import MovementResponse


class StoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: str | None
    city: str | None
    responsible: str | None
    phone: str | None
    created_at: datetime
    updated_at: datetime | None


class StoreCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    address: str | None = None
    city: str | None = None
    responsible: str | None = None
    phone: str | None = None


class StoreUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    address: str | None = None
    city: str | None = None
    responsible: str | None = None
    phone: str | None = None


class StoreListResponse(BaseModel):
    stores: list[StoreResponse]
    pagination: Pagination


class InventoryItemResponse(BaseModel):
    asset: AssetResponse
    arrived_at: datetime
    in_transit: bool
    movement_id: int


class InventorySummaryResponse(BaseModel):
    total_items: int
    total_value: MoneyValue
    unique_assets: int
    consumables: int
    available: int
    in_use: int
    maintenance: int
    in_transit: int


class StoreInventoryResponse(BaseModel):
    store_id: UUID
    assets: list[InventoryItemResponse]
    summary: InventorySummaryResponse


class StoreTransfersResponse(BaseModel):
    store_id: UUID
    movements: list[MovementResponse]
