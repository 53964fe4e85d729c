from sqlalchemy import func, select

from app.assetflow.db.models import ResponsibilityTerm


class ResponsibilityTermRepository:
    def __init__(self, db):
        self.db = db

    def get(self, term_id: int) -> ResponsibilityTerm | None:
        return self.db.get(ResponsibilityTerm, term_id)

    def get_by_number(self, term_number: str) -> ResponsibilityTerm | None:
        stmt = select(ResponsibilityTerm).where(ResponsibilityTerm.term_number == term_number)
        return self.db.execute(stmt).scalars().first()

    def for_movement(self, movement_id: int) -> list[ResponsibilityTerm]:
        stmt = (
            select(ResponsibilityTerm)
            .where(ResponsibilityTerm.movement_id == movement_id)
            .order_by(ResponsibilityTerm.created_at.desc(), ResponsibilityTerm.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def list_terms(self, *, page: int, limit: int) -> tuple[list[ResponsibilityTerm], int]:
        stmt = (
            select(ResponsibilityTerm)
            .order_by(ResponsibilityTerm.created_at.desc(), ResponsibilityTerm.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(select(func.count()).select_from(ResponsibilityTerm)).scalar_one()
        return rows, total

    def add(self, term: ResponsibilityTerm) -> ResponsibilityTerm:
        self.db.add(term)
        self.db.flush()
        return term

    def delete(self, term: ResponsibilityTerm) -> None:
        self.db.delete(term)
        self.db.flush()
