from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.core.logging import log_json
from app.assetflow.db.models import ResponsibilityTerm
from app.assetflow.db.session import atomic
from app.assetflow.repos.movements import MovementRepository
from app.assetflow.repos.terms import ResponsibilityTermRepository
from app.assetflow.services.ledger import require_text

logger = logging.getLogger(__name__)


class ResponsibilityTerms:
    """Custody terms signed by whoever takes an asset over.

    A term points at the ledger entry that moved the asset; the entry itself
    is never touched. Term numbers are unique across the system.
    """

    def __init__(self, db):
        self.db = db
        self.terms = ResponsibilityTermRepository(db)
        self.movements = MovementRepository(db)

    def _duplicate(self, term_number: str) -> AppError:
        return AppError(ErrorCatalog.DUPLICATE_TERM_NUMBER, details={"term_number": term_number})

    def create_term(
        self,
        *,
        term_number: str,
        movement_id: int,
        recipient_name: str,
        recipient_cpf: str,
        recipient_unit: str,
        created_by: str,
        recipient_email: str | None = None,
    ) -> ResponsibilityTerm:
        term_number = require_text(term_number, "term_number")
        term = ResponsibilityTerm(
            term_number=term_number,
            movement_id=movement_id,
            recipient_name=require_text(recipient_name, "recipient_name"),
            recipient_cpf=require_text(recipient_cpf, "recipient_cpf"),
            recipient_email=(recipient_email or "").strip() or None,
            recipient_unit=require_text(recipient_unit, "recipient_unit"),
            created_by=require_text(created_by, "created_by"),
        )
        try:
            with atomic(self.db):
                if self.movements.get(movement_id) is None:
                    raise AppError(
                        ErrorCatalog.NOT_FOUND,
                        details={"message": "movement not found", "movement_id": movement_id},
                    )
                if self.terms.get_by_number(term_number) is not None:
                    raise self._duplicate(term_number)
                self.terms.add(term)
        except IntegrityError as exc:
            if "term_number" not in str(exc.orig):
                raise
            raise self._duplicate(term_number) from exc

        log_json(
            logger,
            {
                "event": "responsibility_term.created",
                "term_id": term.id,
                "term_number": term.term_number,
                "movement_id": term.movement_id,
                "created_by": term.created_by,
            },
        )
        return term

    def get_term(self, term_id: int) -> ResponsibilityTerm:
        term = self.terms.get(term_id)
        if term is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "term not found", "term_id": term_id})
        return term

    def terms_for_movement(self, movement_id: int) -> list[ResponsibilityTerm]:
        return self.terms.for_movement(movement_id)

    def list_terms(self, *, page: int, limit: int) -> tuple[list[ResponsibilityTerm], int]:
        return self.terms.list_terms(page=page, limit=limit)

    def delete_term(self, term_id: int) -> None:
        with atomic(self.db):
            term = self.get_term(term_id)
            self.terms.delete(term)
        log_json(logger, {"event": "responsibility_term.deleted", "term_id": term_id})
