from sqlalchemy import func, or_, select

from app.assetflow.db.models import Movement, Store


class StoreRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, store_id):
        return self.db.get(Store, store_id)

    def list_stores(
        self,
        *,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
    ):
        stmt = select(Store)
        count_stmt = select(func.count()).select_from(Store)

        if search:
            pattern = f"%{search.strip()}%"
            condition = or_(Store.name.ilike(pattern), Store.city.ilike(pattern))
            stmt = stmt.where(condition)
            count_stmt = count_stmt.where(condition)

        sort_column = Store.name if sort_by == "name" else Store.created_at
        stmt = stmt.order_by(sort_column.asc() if sort_order == "asc" else sort_column.desc())

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def is_referenced(self, store_id) -> bool:
        stmt = (
            select(Movement.id)
            .where(or_(Movement.origin_store_id == store_id, Movement.destination_store_id == store_id))
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def create(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def update(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def delete(self, store: Store) -> None:
        self.db.delete(store)
        self.db.commit()
