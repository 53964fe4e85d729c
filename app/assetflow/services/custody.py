"""Read-side views derived from the movement ledger.

Nothing here writes. Location is never stored on the asset: it is the
destination of the asset's latest TRANSFER or RECEIPT entry, and no such
entry means the asset has never left the central warehouse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import Asset, AssetKind, AssetStatus, Movement, MovementType, utcnow
from app.assetflow.repos.movements import MovementQueryFilters, MovementRepository
from app.assetflow.repos.stores import StoreRepository
from app.assetflow.services.registry import AssetRegistry

_SECONDS_PER_DAY = 86400


def whole_days(later: datetime, earlier: datetime, *, round_up: bool = False) -> int:
    seconds = (later - earlier).total_seconds()
    if round_up:
        return int(-(-seconds // _SECONDS_PER_DAY))
    return int(seconds // _SECONDS_PER_DAY)


@dataclass(frozen=True)
class Location:
    store_id: object | None
    in_transit: bool
    since: datetime | None
    movement_id: int | None


@dataclass(frozen=True)
class DatedEntry:
    movement: Movement
    days: int | None


@dataclass(frozen=True)
class AssetHistory:
    asset: Asset
    location: Location
    entries: list[DatedEntry]

    @property
    def total(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class UnitHistory:
    asset: Asset
    store_id: object
    arrival_date: datetime | None
    days_in_unit: int | None
    entries: list[DatedEntry]


@dataclass(frozen=True)
class InventoryItem:
    asset: Asset
    arrived_at: datetime
    in_transit: bool
    movement_id: int


@dataclass
class InventorySummary:
    total_items: int = 0
    total_value: Decimal = Decimal("0")
    unique_assets: int = 0
    consumables: int = 0
    available: int = 0
    in_use: int = 0
    maintenance: int = 0
    in_transit: int = 0


@dataclass(frozen=True)
class StoreInventory:
    store_id: object
    items: list[InventoryItem]
    summary: InventorySummary = field(default_factory=InventorySummary)


def dwell_times(entries: list[Movement], now: datetime, *, round_up: bool = False) -> list[DatedEntry]:
    """Pair newest-first entries with whole days until the next-older entry.

    The oldest entry is measured against ``now``. Asset history counts a
    started day as a whole one (``round_up``); custody within a store counts
    completed days only.
    """
    dated = []
    for index, movement in enumerate(entries):
        if index < len(entries) - 1:
            days = whole_days(movement.timestamp, entries[index + 1].timestamp, round_up=round_up)
        else:
            days = whole_days(now, movement.timestamp, round_up=round_up)
        dated.append(DatedEntry(movement=movement, days=days))
    return dated


def summarize(items: list[InventoryItem]) -> InventorySummary:
    summary = InventorySummary(total_items=len(items))
    for item in items:
        asset = item.asset
        summary.total_value += asset.purchase_value or Decimal("0")
        if asset.kind == AssetKind.CONSUMABLE:
            summary.consumables += 1
            continue
        summary.unique_assets += 1
        if asset.status == AssetStatus.AVAILABLE:
            summary.available += 1
        elif asset.status == AssetStatus.IN_USE:
            summary.in_use += 1
        elif asset.status == AssetStatus.MAINTENANCE:
            summary.maintenance += 1
        elif asset.status == AssetStatus.IN_TRANSIT:
            summary.in_transit += 1
    return summary


class CustodyQuery:
    def __init__(self, db):
        self.db = db
        self.registry = AssetRegistry(db)
        self.movements = MovementRepository(db)
        self.stores = StoreRepository(db)

    def _require_store(self, store_id) -> None:
        if self.stores.get_by_id(store_id) is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": str(store_id)})

    def _is_pending(self, movement: Movement) -> bool:
        return movement.type == MovementType.TRANSFER and self.movements.receipt_for(movement.id) is None

    def current_location(self, asset_id) -> Location:
        asset = self.registry.get_asset(asset_id)
        entry = self.movements.latest_location_entry(asset.id)
        if entry is None:
            return Location(store_id=None, in_transit=False, since=None, movement_id=None)
        return Location(
            store_id=entry.destination_store_id,
            in_transit=self._is_pending(entry),
            since=entry.timestamp,
            movement_id=entry.id,
        )

    def asset_history(self, asset_id, *, now: datetime | None = None) -> AssetHistory:
        asset = self.registry.get_asset(asset_id)
        entries = self.movements.history_for_asset(asset.id)
        return AssetHistory(
            asset=asset,
            location=self.current_location(asset.id),
            entries=dwell_times(entries, now or utcnow(), round_up=True),
        )

    def unit_history(self, asset_id, store_id, *, now: datetime | None = None) -> UnitHistory:
        asset = self.registry.get_asset(asset_id)
        self._require_store(store_id)
        now = now or utcnow()
        arrival = self.movements.arrival_date(asset.id, store_id)
        entries = self.movements.history_for_asset(asset.id, store_id=store_id)
        return UnitHistory(
            asset=asset,
            store_id=store_id,
            arrival_date=arrival,
            days_in_unit=whole_days(now, arrival) if arrival is not None else None,
            entries=dwell_times(entries, now),
        )

    def store_inventory(self, store_id, *, status: AssetStatus | None = None) -> StoreInventory:
        self._require_store(store_id)
        items = []
        for asset, movement in self.movements.assets_located_at(store_id):
            if status is not None and asset.status != status:
                continue
            items.append(
                InventoryItem(
                    asset=asset,
                    arrived_at=movement.timestamp,
                    in_transit=self._is_pending(movement),
                    movement_id=movement.id,
                )
            )
        return StoreInventory(store_id=store_id, items=items, summary=summarize(items))

    def store_transfers(
        self, store_id, *, start_date: date | None = None, end_date: date | None = None
    ) -> list[Movement]:
        self._require_store(store_id)
        return self.movements.transfers_into_store(store_id, start_date=start_date, end_date=end_date)

    def list_movements(self, filters: MovementQueryFilters, *, page: int, limit: int) -> tuple[list[Movement], int]:
        return self.movements.list_movements(filters, page=page, limit=limit)

    def get_movement(self, movement_id: int) -> Movement:
        movement = self.movements.get(movement_id)
        if movement is None:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": "movement not found", "movement_id": movement_id},
            )
        return movement
