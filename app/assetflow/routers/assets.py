from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.assetflow.core.config import settings
from app.assetflow.db.models import AssetKind, AssetStatus
from app.assetflow.db.session import get_db
from app.assetflow.repos.assets import AssetQueryFilters
from app.assetflow.schemas.assets import (
    AddStockRequest,
    AddStockResponse,
    AssetCreateRequest,
    AssetHistoryResponse,
    AssetListResponse,
    AssetResponse,
    AssetUpdateRequest,
    CustodyEntryResponse,
    HistoryEntryResponse,
    LocationResponse,
    LowStockResponse,
    StatusChangeRequest,
    StatusChangeResponse,
    UnitHistoryResponse,
)
from app.assetflow.schemas.common import Pagination
from app.assetflow.schemas.errors import READ_ERRORS, WRITE_ERRORS
from app.assetflow.schemas.movements import MovementResponse
from app.assetflow.services.custody import CustodyQuery, Location
from app.assetflow.services.registry import AssetRegistry


router = APIRouter()


def _location_response(asset_id, location: Location) -> LocationResponse:
    return LocationResponse(
        asset_id=asset_id,
        store_id=location.store_id,
        central_warehouse=location.store_id is None,
        in_transit=location.in_transit,
        since=location.since,
        movement_id=location.movement_id,
    )


@router.get("/assets", response_model=AssetListResponse)
def list_assets(
    db=Depends(get_db),
    kind: AssetKind | None = None,
    status: AssetStatus | None = None,
    category: str | None = None,
    q: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    filters = AssetQueryFilters(kind=kind, status=status, category=category, q=q)
    rows, total = AssetRegistry(db).list_assets(filters, page=page, page_size=page_size)
    return AssetListResponse(
        assets=[AssetResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page, limit=page_size, total=total),
    )


@router.post("/assets", response_model=AssetResponse, status_code=201, responses=WRITE_ERRORS)
def create_asset(payload: AssetCreateRequest, db=Depends(get_db)):
    asset = AssetRegistry(db).create_asset(**payload.model_dump())
    return AssetResponse.model_validate(asset)


@router.get("/assets/low-stock", response_model=LowStockResponse)
def low_stock(db=Depends(get_db)):
    return LowStockResponse(assets=[AssetResponse.model_validate(row) for row in AssetRegistry(db).low_stock()])


@router.post("/assets/add-stock", response_model=AddStockResponse, responses=WRITE_ERRORS)
def add_stock(payload: AddStockRequest, db=Depends(get_db)):
    result = AssetRegistry(db).add_stock(
        payload.asset_id,
        payload.quantity,
        technician=payload.technician,
        unit_value=payload.unit_value,
        document=payload.document,
        supplier=payload.supplier,
    )
    return AddStockResponse(
        movement_id=result.movement.id,
        asset_id=result.asset.id,
        quantity=result.movement.quantity,
        previous_stock=result.previous_stock,
        new_stock=result.new_stock,
    )


@router.get("/assets/barcode/{barcode}", response_model=AssetResponse, responses=READ_ERRORS)
def get_asset_by_barcode(barcode: str, db=Depends(get_db)):
    return AssetResponse.model_validate(AssetRegistry(db).get_by_barcode(barcode))


@router.get("/assets/{asset_id}", response_model=AssetResponse, responses=READ_ERRORS)
def get_asset(asset_id: UUID, db=Depends(get_db)):
    return AssetResponse.model_validate(AssetRegistry(db).get_asset(asset_id))


@router.patch("/assets/{asset_id}", response_model=AssetResponse, responses=WRITE_ERRORS)
def update_asset(asset_id: UUID, payload: AssetUpdateRequest, db=Depends(get_db)):
    asset = AssetRegistry(db).update_asset(asset_id, payload.model_dump(exclude_unset=True))
    return AssetResponse.model_validate(asset)


@router.delete("/assets/{asset_id}", status_code=204, responses=WRITE_ERRORS)
def delete_asset(asset_id: UUID, db=Depends(get_db)):
    AssetRegistry(db).delete_asset(asset_id)
    return Response(status_code=204)


@router.patch("/assets/{asset_id}/status", response_model=StatusChangeResponse, responses=WRITE_ERRORS)
def change_status(asset_id: UUID, payload: StatusChangeRequest, db=Depends(get_db)):
    registry = AssetRegistry(db)
    movement = registry.change_status(
        asset_id,
        payload.status,
        technician=payload.technician,
        notes=payload.notes,
    )
    return StatusChangeResponse(
        movement_id=movement.id,
        asset=AssetResponse.model_validate(registry.get_asset(asset_id)),
    )


@router.get("/assets/{asset_id}/history", response_model=AssetHistoryResponse, responses=READ_ERRORS)
def asset_history(asset_id: UUID, db=Depends(get_db)):
    history = CustodyQuery(db).asset_history(asset_id)
    return AssetHistoryResponse(
        asset=AssetResponse.model_validate(history.asset),
        location=_location_response(history.asset.id, history.location),
        movements=[
            HistoryEntryResponse(
                **MovementResponse.model_validate(entry.movement).model_dump(),
                days_in_location=entry.days,
            )
            for entry in history.entries
        ],
        total_movements=history.total,
    )


@router.get(
    "/assets/{asset_id}/unit-history/{store_id}",
    response_model=UnitHistoryResponse,
    responses=READ_ERRORS,
)
def unit_history(asset_id: UUID, store_id: UUID, db=Depends(get_db)):
    history = CustodyQuery(db).unit_history(asset_id, store_id)
    return UnitHistoryResponse(
        asset_id=history.asset.id,
        store_id=history.store_id,
        arrival_date=history.arrival_date,
        days_in_unit=history.days_in_unit,
        movements=[
            CustodyEntryResponse(
                **MovementResponse.model_validate(entry.movement).model_dump(),
                days_in_custody=entry.days,
            )
            for entry in history.entries
        ],
    )


@router.get("/assets/{asset_id}/location", response_model=LocationResponse, responses=READ_ERRORS)
def current_location(asset_id: UUID, db=Depends(get_db)):
    return _location_response(asset_id, CustodyQuery(db).current_location(asset_id))
