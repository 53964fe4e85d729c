from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import aliased

from app.assetflow.db.models import Asset, Movement, MovementType


LOCATION_MOVEMENT_TYPES = (MovementType.TRANSFER, MovementType.RECEIPT)


@dataclass(frozen=True)
class MovementQueryFilters:
    asset_id: object | None = None
    type: MovementType | None = None
    store_id: object | None = None
    technician: str | None = None
    start_date: date | None = None
    end_date: date | None = None


def _ledger_order_desc():
    return (Movement.timestamp.desc(), Movement.id.desc())


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min)


class MovementRepository:
    """Read and append access to the movement ledger. Entries are never updated or deleted."""

    def __init__(self, db):
        self.db = db

    def append(self, movement: Movement) -> Movement:
        self.db.add(movement)
        self.db.flush()
        return movement

    def get(self, movement_id: int, *, for_update: bool = False) -> Movement | None:
        query = select(Movement).where(Movement.id == movement_id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def receipt_for(self, transfer_id: int) -> Movement | None:
        return (
            self.db.execute(select(Movement).where(Movement.resolves_movement_id == transfer_id))
            .scalars()
            .first()
        )

    def list_movements(
        self, filters: MovementQueryFilters, *, page: int, limit: int
    ) -> tuple[list[Movement], int]:
        query = self._apply_filters(filters)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(query.order_by(*_ledger_order_desc()).offset((page - 1) * limit).limit(limit))
            .scalars()
            .all()
        )
        return rows, total

    def _apply_filters(self, filters: MovementQueryFilters):
        query = select(Movement)
        if filters.asset_id:
            query = query.where(Movement.asset_id == filters.asset_id)
        if filters.type:
            query = query.where(Movement.type == filters.type)
        if filters.store_id:
            query = query.where(
                or_(
                    Movement.origin_store_id == filters.store_id,
                    Movement.destination_store_id == filters.store_id,
                )
            )
        if filters.technician:
            query = query.where(Movement.technician.ilike(f"%{filters.technician}%"))
        if filters.start_date:
            query = query.where(Movement.timestamp >= _day_start(filters.start_date))
        if filters.end_date:
            query = query.where(Movement.timestamp < _day_start(filters.end_date + timedelta(days=1)))
        return query

    def history_for_asset(self, asset_id, *, store_id=None) -> list[Movement]:
        query = select(Movement).where(Movement.asset_id == asset_id)
        if store_id is not None:
            query = query.where(Movement.destination_store_id == store_id)
        return self.db.execute(query.order_by(*_ledger_order_desc())).scalars().all()

    def arrival_date(self, asset_id, store_id) -> datetime | None:
        return self.db.execute(
            select(func.min(Movement.timestamp)).where(
                Movement.asset_id == asset_id,
                Movement.destination_store_id == store_id,
            )
        ).scalar_one()

    def latest_location_entry(self, asset_id) -> Movement | None:
        query = (
            select(Movement)
            .where(Movement.asset_id == asset_id, Movement.type.in_(LOCATION_MOVEMENT_TYPES))
            .order_by(*_ledger_order_desc())
            .limit(1)
        )
        return self.db.execute(query).scalars().first()

    def pending_transfers(self, *, store_id=None, barcode: str | None = None) -> list[Movement]:
        receipt = aliased(Movement)
        query = (
            select(Movement)
            .outerjoin(
                receipt,
                and_(receipt.resolves_movement_id == Movement.id, receipt.type == MovementType.RECEIPT),
            )
            .where(Movement.type == MovementType.TRANSFER, receipt.id.is_(None))
        )
        if store_id is not None:
            query = query.where(Movement.destination_store_id == store_id)
        if barcode is not None:
            query = query.join(Asset, Asset.id == Movement.asset_id).where(Asset.barcode == barcode)
        return self.db.execute(query.order_by(*_ledger_order_desc())).scalars().all()

    def assets_located_at(self, store_id) -> list[tuple[Asset, Movement]]:
        ranked = (
            select(
                Movement.id.label("movement_id"),
                func.row_number()
                .over(partition_by=Movement.asset_id, order_by=_ledger_order_desc())
                .label("position"),
            )
            .where(Movement.type.in_(LOCATION_MOVEMENT_TYPES))
            .subquery()
        )
        query = (
            select(Asset, Movement)
            .join(Movement, Movement.asset_id == Asset.id)
            .join(ranked, ranked.c.movement_id == Movement.id)
            .where(ranked.c.position == 1, Movement.destination_store_id == store_id)
            .order_by(Asset.name.asc())
        )
        return [(row[0], row[1]) for row in self.db.execute(query).all()]

    def transfers_into_store(
        self, store_id, *, start_date: date | None = None, end_date: date | None = None
    ) -> list[Movement]:
        filters = MovementQueryFilters(type=MovementType.TRANSFER, start_date=start_date, end_date=end_date)
        query = self._apply_filters(filters).where(Movement.destination_store_id == store_id)
        return self.db.execute(query.order_by(*_ledger_order_desc())).scalars().all()

    def transfer_receipt_pairs(self) -> list[tuple[Movement, Movement]]:
        transfer = aliased(Movement)
        query = select(transfer, Movement).join(transfer, Movement.resolves_movement_id == transfer.id)
        return [(row[0], row[1]) for row in self.db.execute(query).all()]
