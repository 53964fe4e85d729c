from fastapi import APIRouter, Depends, Query, Response

from app.assetflow.core.config import settings
from app.assetflow.db.models import ResponsibilityTerm
from app.assetflow.db.session import get_db
from app.assetflow.schemas.common import Pagination
from app.assetflow.schemas.errors import READ_ERRORS, WRITE_ERRORS
from app.assetflow.schemas.terms import (
    ResponsibilityTermCreateRequest,
    ResponsibilityTermDetailResponse,
    ResponsibilityTermListResponse,
    ResponsibilityTermResponse,
)
from app.assetflow.services.terms import ResponsibilityTerms

router = APIRouter()


def _detail(term: ResponsibilityTerm) -> ResponsibilityTermDetailResponse:
    return ResponsibilityTermDetailResponse(
        **ResponsibilityTermResponse.model_validate(term).model_dump(),
        movement_type=term.movement.type,
        movement_counterparty=term.movement.counterparty,
        movement_timestamp=term.movement.timestamp,
    )


@router.get("/responsibility-terms", response_model=ResponsibilityTermListResponse)
def list_terms(
    db=Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    rows, total = ResponsibilityTerms(db).list_terms(page=page, limit=limit)
    return ResponsibilityTermListResponse(
        terms=[ResponsibilityTermResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.post(
    "/responsibility-terms",
    response_model=ResponsibilityTermResponse,
    status_code=201,
    responses=WRITE_ERRORS,
)
def create_term(payload: ResponsibilityTermCreateRequest, db=Depends(get_db)):
    term = ResponsibilityTerms(db).create_term(**payload.model_dump())
    return ResponsibilityTermResponse.model_validate(term)


@router.get("/responsibility-terms/movement/{movement_id}", response_model=list[ResponsibilityTermResponse])
def terms_for_movement(movement_id: int, db=Depends(get_db)):
    terms = ResponsibilityTerms(db).terms_for_movement(movement_id)
    return [ResponsibilityTermResponse.model_validate(term) for term in terms]


@router.get(
    "/responsibility-terms/{term_id}",
    response_model=ResponsibilityTermDetailResponse,
    responses=READ_ERRORS,
)
def get_term(term_id: int, db=Depends(get_db)):
    return _detail(ResponsibilityTerms(db).get_term(term_id))


@router.delete("/responsibility-terms/{term_id}", status_code=204, responses=WRITE_ERRORS)
def delete_term(term_id: int, db=Depends(get_db)):
    ResponsibilityTerms(db).delete_term(term_id)
    return Response(status_code=204)
