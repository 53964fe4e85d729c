from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, or_, select, update

from app.assetflow.db.models import Asset, AssetKind, AssetStatus, Movement


@dataclass(frozen=True)
class AssetQueryFilters:
    kind: AssetKind | None = None
    status: AssetStatus | None = None
    category: str | None = None
    q: str | None = None


class AssetRepository:
    def __init__(self, db):
        self.db = db

    def get(self, asset_id, *, for_update: bool = False) -> Asset | None:
        query = select(Asset).where(Asset.id == asset_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(query).scalars().first()

    def get_by_barcode(self, barcode: str) -> Asset | None:
        query = select(Asset).where(
            Asset.barcode == barcode,
            or_(Asset.status.is_(None), Asset.status != AssetStatus.DISCARDED),
        )
        return self.db.execute(query).scalars().first()

    def list_assets(self, filters: AssetQueryFilters, *, page: int, page_size: int) -> tuple[list[Asset], int]:
        query = self._apply_filters(filters)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(query.order_by(Asset.name.asc()).offset((page - 1) * page_size).limit(page_size))
            .scalars()
            .all()
        )
        return rows, total

    def _apply_filters(self, filters: AssetQueryFilters):
        query = select(Asset)
        if filters.kind:
            query = query.where(Asset.kind == filters.kind)
        if filters.status:
            query = query.where(Asset.status == filters.status)
        if filters.category:
            query = query.where(Asset.category == filters.category)
        if filters.q:
            like = f"%{filters.q}%"
            query = query.where(
                or_(
                    Asset.name.ilike(like),
                    Asset.brand_model.ilike(like),
                    Asset.serial_number.ilike(like),
                    Asset.patrimony_tag.ilike(like),
                    Asset.barcode.ilike(like),
                )
            )
        return query

    def low_stock(self) -> list[Asset]:
        query = (
            select(Asset)
            .where(Asset.kind == AssetKind.CONSUMABLE, Asset.stock_quantity <= Asset.min_stock)
            .order_by(Asset.stock_quantity.asc(), Asset.name.asc())
        )
        return self.db.execute(query).scalars().all()

    def identity_conflicts(
        self,
        *,
        serial_number: str | None,
        patrimony_tag: str | None,
        barcode: str | None,
        exclude_id=None,
    ) -> list[str]:
        candidates = {
            "serial_number": (Asset.serial_number, serial_number),
            "patrimony_tag": (Asset.patrimony_tag, patrimony_tag),
            "barcode": (Asset.barcode, barcode),
        }
        conflicts = []
        for field, (column, value) in candidates.items():
            if not value:
                continue
            query = select(Asset.id).where(column == value)
            if exclude_id is not None:
                query = query.where(Asset.id != exclude_id)
            if self.db.execute(query.limit(1)).first() is not None:
                conflicts.append(field)
        return conflicts

    def has_movements(self, asset_id) -> bool:
        return self.db.execute(select(Movement.id).where(Movement.asset_id == asset_id).limit(1)).first() is not None

    def compare_and_set_status(self, asset_id, expected: AssetStatus, new: AssetStatus) -> bool:
        """Flip status only if the row still holds ``expected``; returns whether it did."""
        result = self.db.execute(
            update(Asset)
            .where(Asset.id == asset_id, Asset.status == expected)
            .values(status=new)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def debit_stock(self, asset_id, quantity: int) -> bool:
        """Subtract ``quantity`` only if the pool still covers it; returns whether it did."""
        result = self.db.execute(
            update(Asset)
            .where(
                Asset.id == asset_id,
                Asset.kind == AssetKind.CONSUMABLE,
                Asset.stock_quantity >= quantity,
            )
            .values(stock_quantity=Asset.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def credit_stock(self, asset_id, quantity: int) -> bool:
        result = self.db.execute(
            update(Asset)
            .where(Asset.id == asset_id, Asset.kind == AssetKind.CONSUMABLE)
            .values(stock_quantity=Asset.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add(self, asset: Asset) -> Asset:
        self.db.add(asset)
        self.db.flush()
        return asset

    def delete(self, asset: Asset) -> None:
        self.db.delete(asset)
        self.db.flush()
