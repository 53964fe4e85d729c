from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.assetflow.core.config import settings
from app.assetflow.db.models import Movement, MovementType
from app.assetflow.db.session import get_db
from app.assetflow.repos.movements import MovementQueryFilters
from app.assetflow.schemas.common import Pagination
from app.assetflow.schemas.errors import READ_ERRORS, WRITE_ERRORS
from app.assetflow.schemas.movements import (
    CheckinRequest,
    CheckoutRequest,
    ConfirmReceiptRequest,
    ConfirmReceiptResponse,
    MovementListResponse,
    MovementResponse,
    PendingTransferListResponse,
    PendingTransferResponse,
    TransferRequest,
    TransferResponse,
)
from app.assetflow.services.custody import CustodyQuery
from app.assetflow.services.receipts import Divergence, ReceiptReconciler
from app.assetflow.services.transfers import TransferEngine


router = APIRouter()


def _pending_response(movement: Movement) -> PendingTransferResponse:
    destination = movement.destination_store
    return PendingTransferResponse(
        **MovementResponse.model_validate(movement).model_dump(),
        asset_name=movement.asset.name,
        barcode=movement.asset.barcode,
        destination_store_name=destination.name if destination is not None else None,
    )


@router.get("/movements", response_model=MovementListResponse)
def list_movements(
    db=Depends(get_db),
    asset_id: UUID | None = None,
    type: MovementType | None = None,
    store_id: UUID | None = None,
    technician: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    filters = MovementQueryFilters(
        asset_id=asset_id,
        type=type,
        store_id=store_id,
        technician=technician,
        start_date=start_date,
        end_date=end_date,
    )
    rows, total = CustodyQuery(db).list_movements(filters, page=page, limit=limit)
    return MovementListResponse(
        movements=[MovementResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/movements/pending-receipts", response_model=PendingTransferListResponse)
def pending_receipts(db=Depends(get_db), store_id: UUID | None = None):
    pending = ReceiptReconciler(db).pending_transfers(store_id=store_id)
    return PendingTransferListResponse(transfers=[_pending_response(row) for row in pending])


@router.get(
    "/movements/pending-receipt/{barcode}",
    response_model=PendingTransferResponse,
    responses=READ_ERRORS,
)
def pending_receipt_by_barcode(barcode: str, db=Depends(get_db), store_id: UUID | None = None):
    return _pending_response(ReceiptReconciler(db).pending_by_barcode(barcode, store_id=store_id))


@router.get("/movements/{movement_id}", response_model=MovementResponse, responses=READ_ERRORS)
def get_movement(movement_id: int, db=Depends(get_db)):
    return MovementResponse.model_validate(CustodyQuery(db).get_movement(movement_id))


@router.post("/movements/transfer", response_model=TransferResponse, status_code=201, responses=WRITE_ERRORS)
def transfer(payload: TransferRequest, db=Depends(get_db)):
    movement = TransferEngine(db).transfer(
        payload.asset_id,
        payload.destination_store_id,
        payload.quantity,
        technician=payload.technician,
        counterparty=payload.counterparty,
        notes=payload.notes,
    )
    return TransferResponse(
        movement_id=movement.id,
        asset_id=movement.asset_id,
        type=movement.type,
        quantity=movement.quantity,
        origin_store_id=movement.origin_store_id,
        destination_store_id=movement.destination_store_id,
    )


@router.post(
    "/movements/confirm-receipt",
    response_model=ConfirmReceiptResponse,
    status_code=201,
    responses=WRITE_ERRORS,
)
def confirm_receipt(payload: ConfirmReceiptRequest, db=Depends(get_db)):
    divergence = None
    if payload.divergence is not None:
        divergence = Divergence(type=payload.divergence.type, description=payload.divergence.description)
    result = ReceiptReconciler(db).confirm_receipt(
        payload.transfer_id,
        payload.asset_id,
        technician=payload.technician,
        received_quantity=payload.received_quantity,
        divergence=divergence,
        notes=payload.notes,
    )
    return ConfirmReceiptResponse(
        receipt_id=result.receipt.id,
        transfer_id=result.transfer.id,
        asset_id=result.receipt.asset_id,
        quantity=result.receipt.quantity,
        transferred_quantity=result.transfer.quantity,
        has_divergence=result.has_divergence,
        message="Receipt confirmed with divergence" if result.has_divergence else "Receipt confirmed",
    )


@router.post("/movements/checkout", response_model=MovementResponse, status_code=201, responses=WRITE_ERRORS)
def checkout(payload: CheckoutRequest, db=Depends(get_db)):
    movement = TransferEngine(db).checkout(
        payload.asset_id,
        technician=payload.technician,
        counterparty=payload.counterparty,
        destination_store_id=payload.destination_store_id,
        notes=payload.notes,
    )
    return MovementResponse.model_validate(movement)


@router.post("/movements/checkin", response_model=MovementResponse, status_code=201, responses=WRITE_ERRORS)
def checkin(payload: CheckinRequest, db=Depends(get_db)):
    movement = TransferEngine(db).checkin(
        payload.asset_id,
        technician=payload.technician,
        counterparty=payload.counterparty,
        status=payload.status,
        notes=payload.notes,
    )
    return MovementResponse.model_validate(movement)
