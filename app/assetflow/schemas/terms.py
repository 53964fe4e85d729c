from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.assetflow.db.models import MovementType
from app.assetflow.schemas.common import Pagination


class ResponsibilityTermCreateRequest(BaseModel):
    term_number: str
    movement_id: int
    recipient_name: str
    recipient_cpf: str
    recipient_email: str | None = None
    recipient_unit: str
    created_by: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "term_number": "TR-2026-0042",
                "movement_id": 118,
                "recipient_name": "Carla Menezes",
                "recipient_cpf": "123.456.789-09",
                "recipient_email": "carla.menezes@example.com",
                "recipient_unit": "Store 12",
                "created_by": "ana.souza",
            }
        }
    }


class ResponsibilityTermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    term_number: str
    movement_id: int
    recipient_name: str
    recipient_cpf: str
    recipient_email: str | None
    recipient_unit: str
    created_by: str
    created_at: datetime


class ResponsibilityTermDetailResponse(ResponsibilityTermResponse):
    movement_type: MovementType
    movement_counterparty: str
    movement_timestamp: datetime


class ResponsibilityTermListResponse(BaseModel):
    terms: list[ResponsibilityTermResponse]
    pagination: Pagination
