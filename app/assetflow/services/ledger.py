from __future__ import annotations

import logging

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.core.logging import log_json
from app.assetflow.core.metrics import metrics
from app.assetflow.db.models import Asset, Movement, MovementType


def require_text(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": f"{field_name} is required", "field": field_name},
        )
    return cleaned


def join_notes(*parts: str | None) -> str:
    return " ".join(part.strip() for part in parts if part and part.strip())


def new_movement(
    asset: Asset,
    movement_type: MovementType,
    *,
    quantity: int,
    technician: str,
    counterparty: str,
    notes: str | None = None,
    origin_store_id=None,
    destination_store_id=None,
    resolves_movement_id: int | None = None,
) -> Movement:
    return Movement(
        asset_id=asset.id,
        type=movement_type,
        quantity=quantity,
        technician=technician,
        counterparty=counterparty,
        notes=notes or None,
        origin_store_id=origin_store_id,
        destination_store_id=destination_store_id,
        resolves_movement_id=resolves_movement_id,
    )


def announce(logger: logging.Logger, event: str, movement: Movement, **extra) -> None:
    """Log and count a ledger entry once its transaction has committed."""
    metrics.increment_ledger_entry(movement.type.value)
    payload = {
        "event": event,
        "movement_id": movement.id,
        "movement_type": movement.type.value,
        "asset_id": str(movement.asset_id),
        "quantity": movement.quantity,
        "origin_store_id": str(movement.origin_store_id) if movement.origin_store_id else None,
        "destination_store_id": str(movement.destination_store_id) if movement.destination_store_id else None,
        "technician": movement.technician,
    }
    payload.update(extra)
    log_json(logger, payload)
