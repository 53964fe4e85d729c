from __future__ import annotations

from datetime import date
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.assetflow.core.config import settings
from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import AssetStatus, Store
from app.assetflow.db.session import get_db
from app.assetflow.repos.stores import StoreRepository
from app.assetflow.schemas.assets import AssetResponse
from app.assetflow.schemas.common import Pagination
from app.assetflow.schemas.errors import READ_ERRORS, WRITE_ERRORS
from app.assetflow.schemas.movements import MovementResponse
from app.assetflow.schemas.stores import (
    InventoryItemResponse,
    InventorySummaryResponse,
    StoreCreateRequest,
    StoreInventoryResponse,
    StoreListResponse,
    StoreResponse,
    StoreTransfersResponse,
    StoreUpdateRequest,
)
from app.assetflow.services.custody import CustodyQuery


router = APIRouter()


def _get_store_or_404(repo: StoreRepository, store_id: UUID) -> Store:
    store = repo.get_by_id(store_id)
    if store is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": str(store_id)})
    return store


@router.get("/stores", response_model=StoreListResponse)
def list_stores(
    db=Depends(get_db),
    q: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: Literal["name", "created_at"] = "name",
    sort_order: Literal["asc", "desc"] = "asc",
):
    rows, total = StoreRepository(db).list_stores(
        search=q,
        limit=page_size,
        offset=(page - 1) * page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return StoreListResponse(
        stores=[StoreResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page, limit=page_size, total=total),
    )


@router.post("/stores", response_model=StoreResponse, status_code=201, responses=WRITE_ERRORS)
def create_store(payload: StoreCreateRequest, db=Depends(get_db)):
    store = StoreRepository(db).create(Store(**payload.model_dump()))
    return StoreResponse.model_validate(store)


@router.get("/stores/{store_id}", response_model=StoreResponse, responses=READ_ERRORS)
def get_store(store_id: UUID, db=Depends(get_db)):
    return StoreResponse.model_validate(_get_store_or_404(StoreRepository(db), store_id))


@router.patch("/stores/{store_id}", response_model=StoreResponse, responses=WRITE_ERRORS)
def update_store(store_id: UUID, payload: StoreUpdateRequest, db=Depends(get_db)):
    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(store, field, value)
    return StoreResponse.model_validate(repo.update(store))


@router.delete("/stores/{store_id}", status_code=204, responses=WRITE_ERRORS)
def delete_store(store_id: UUID, db=Depends(get_db)):
    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id)
    if repo.is_referenced(store.id):
        raise AppError(
            ErrorCatalog.STORE_REFERENCED,
            details={"message": "stores referenced by ledger entries cannot be deleted", "store_id": str(store.id)},
        )
    repo.delete(store)
    return Response(status_code=204)


@router.get("/stores/{store_id}/inventory", response_model=StoreInventoryResponse, responses=READ_ERRORS)
def store_inventory(store_id: UUID, db=Depends(get_db), status: AssetStatus | None = None):
    inventory = CustodyQuery(db).store_inventory(store_id, status=status)
    summary = inventory.summary
    return StoreInventoryResponse(
        store_id=inventory.store_id,
        assets=[
            InventoryItemResponse(
                asset=AssetResponse.model_validate(item.asset),
                arrived_at=item.arrived_at,
                in_transit=item.in_transit,
                movement_id=item.movement_id,
            )
            for item in inventory.items
        ],
        summary=InventorySummaryResponse(
            total_items=summary.total_items,
            total_value=summary.total_value,
            unique_assets=summary.unique_assets,
            consumables=summary.consumables,
            available=summary.available,
            in_use=summary.in_use,
            maintenance=summary.maintenance,
            in_transit=summary.in_transit,
        ),
    )


@router.get("/stores/{store_id}/transfers", response_model=StoreTransfersResponse, responses=READ_ERRORS)
def store_transfers(
    store_id: UUID,
    db=Depends(get_db),
    start_date: date | None = None,
    end_date: date | None = None,
):
    movements = CustodyQuery(db).store_transfers(store_id, start_date=start_date, end_date=end_date)
    return StoreTransfersResponse(
        store_id=store_id,
        movements=[MovementResponse.model_validate(row) for row in movements],
    )
