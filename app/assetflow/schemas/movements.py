from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

from app.assetflow.db.models import AssetStatus, MovementType
from app.assetflow.schemas.common import Pagination


class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: UUID
    type: MovementType
    quantity: int
    origin_store_id: UUID | None
    destination_store_id: UUID | None
    technician: str
    counterparty: str
    notes: str | None
    timestamp: datetime
    resolves_movement_id: int | None = None


class MovementListResponse(BaseModel):
    movements: list[MovementResponse]
    pagination: Pagination


class TransferRequest(BaseModel):
    asset_id: UUID
    destination_store_id: UUID
    quantity: int | None = None
    technician: str
    counterparty: str | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "asset_id": "0b7f7c1e-7d43-4a55-9b0e-2f1f5f0f8d11",
                "destination_store_id": "5c0d3f7a-6d8b-4a1c-8e43-9a3b0f2d7e10",
                "quantity": 4,
                "technician": "ana.souza",
                "counterparty": "Store 12 front desk",
                "notes": "Weekly replenishment",
            }
        }
    }


class TransferResponse(BaseModel):
    movement_id: int
    asset_id: UUID
    type: MovementType
    quantity: int
    origin_store_id: UUID | None
    destination_store_id: UUID
    message: str = "Transfer registered"


class DivergencePayload(BaseModel):
    type: str | None = None
    description: str | None = None


class ConfirmReceiptRequest(BaseModel):
    transfer_id: int
    asset_id: UUID
    technician: str
    received_quantity: int | None = None
    has_divergence: bool = False
    divergence: DivergencePayload | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _divergence_follows_flag(self):
        if not self.has_divergence:
            self.divergence = None
        elif self.divergence is None:
            self.divergence = DivergencePayload()
        return self


class ConfirmReceiptResponse(BaseModel):
    receipt_id: int
    transfer_id: int
    asset_id: UUID
    quantity: int
    transferred_quantity: int
    has_divergence: bool
    message: str


class CheckoutRequest(BaseModel):
    asset_id: UUID
    technician: str
    counterparty: str
    destination_store_id: UUID | None = None
    notes: str | None = None


class CheckinRequest(BaseModel):
    asset_id: UUID
    technician: str
    counterparty: str
    status: AssetStatus = AssetStatus.AVAILABLE
    notes: str | None = None


class PendingTransferResponse(MovementResponse):
    asset_name: str
    barcode: str | None
    destination_store_name: str | None


class PendingTransferListResponse(BaseModel):
    transfers: list[PendingTransferResponse]
