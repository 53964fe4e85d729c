from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import Asset, AssetKind, AssetStatus, Movement, MovementType
from app.assetflow.db.session import atomic
from app.assetflow.repos.assets import AssetQueryFilters, AssetRepository
from app.assetflow.repos.movements import MovementRepository
from app.assetflow.services import state_machine
from app.assetflow.services.ledger import announce, join_notes, new_movement, require_text

logger = logging.getLogger(__name__)

_IDENTITY_FIELDS = ("serial_number", "patrimony_tag", "barcode")
_DESCRIPTIVE_FIELDS = (
    "name",
    "brand_model",
    "category",
    "serial_number",
    "patrimony_tag",
    "barcode",
    "min_stock",
    "purchase_value",
    "purchase_date",
    "warranty_expiry",
    "notes",
)
_SYSTEM_COUNTERPARTY = "System"


@dataclass(frozen=True)
class StockEntryResult:
    movement: Movement
    asset: Asset
    previous_stock: int
    new_stock: int


def _clean_identity(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class AssetRegistry:
    """Owns asset records. Status and stock change only through the state machine."""

    def __init__(self, db):
        self.db = db
        self.assets = AssetRepository(db)
        self.movements = MovementRepository(db)

    def get_asset(self, asset_id, *, for_update: bool = False) -> Asset:
        asset = self.assets.get(asset_id, for_update=for_update)
        if asset is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "asset not found", "asset_id": str(asset_id)})
        return asset

    def get_by_barcode(self, barcode: str) -> Asset:
        asset = self.assets.get_by_barcode(barcode)
        if asset is None:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": "no asset found with this barcode", "barcode": barcode},
            )
        return asset

    def list_assets(self, filters: AssetQueryFilters, *, page: int, page_size: int) -> tuple[list[Asset], int]:
        return self.assets.list_assets(filters, page=page, page_size=page_size)

    def low_stock(self) -> list[Asset]:
        return self.assets.low_stock()

    def create_asset(
        self,
        *,
        name: str,
        kind: AssetKind = AssetKind.UNIQUE,
        status: AssetStatus | None = None,
        stock_quantity: int = 0,
        min_stock: int = 0,
        **fields,
    ) -> Asset:
        name = require_text(name, "name")
        for field in _IDENTITY_FIELDS:
            fields[field] = _clean_identity(fields.get(field))

        if kind == AssetKind.UNIQUE:
            if not fields["serial_number"] and not fields["patrimony_tag"]:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "unique assets require a serial number or a patrimony tag"},
                )
            status = status or AssetStatus.AVAILABLE
            if status == AssetStatus.IN_TRANSIT:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "assets cannot be registered in transit"},
                )
            stock_quantity = 0
        else:
            if stock_quantity is None or stock_quantity < 0 or min_stock is None or min_stock < 0:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={
                        "message": "consumables require a non-negative stock_quantity and min_stock",
                        "stock_quantity": stock_quantity,
                        "min_stock": min_stock,
                    },
                )
            status = None

        self._ensure_unique_identity(fields)
        asset = Asset(
            name=name,
            kind=kind,
            status=status,
            stock_quantity=stock_quantity,
            min_stock=min_stock or 0,
            **{key: value for key, value in fields.items() if key in _DESCRIPTIVE_FIELDS},
        )
        with atomic(self.db):
            self.assets.add(asset)
        logger.info("Registered %s asset %s", kind.value, asset.id)
        return asset

    def update_asset(self, asset_id, changes: dict) -> Asset:
        unknown = sorted(set(changes) - set(_DESCRIPTIVE_FIELDS))
        if unknown:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={
                    "message": "only descriptive fields can be updated; status and stock move through the ledger",
                    "fields": unknown,
                },
            )
        asset = self.get_asset(asset_id)
        for field in _IDENTITY_FIELDS:
            if field in changes:
                changes[field] = _clean_identity(changes[field])
        if "name" in changes:
            changes["name"] = require_text(changes["name"], "name")
        if changes.get("min_stock") is not None and changes["min_stock"] < 0:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "min_stock must be non-negative", "min_stock": changes["min_stock"]},
            )
        if asset.kind == AssetKind.UNIQUE:
            serial = changes.get("serial_number", asset.serial_number)
            tag = changes.get("patrimony_tag", asset.patrimony_tag)
            if not serial and not tag:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "unique assets require a serial number or a patrimony tag"},
                )
        self._ensure_unique_identity(changes, exclude_id=asset.id)
        with atomic(self.db):
            for field, value in changes.items():
                setattr(asset, field, value)
        return asset

    def delete_asset(self, asset_id) -> None:
        asset = self.get_asset(asset_id)
        if self.assets.has_movements(asset.id):
            raise AppError(
                ErrorCatalog.ASSET_REFERENCED,
                details={"message": "assets with ledger history cannot be deleted", "asset_id": str(asset.id)},
            )
        with atomic(self.db):
            self.assets.delete(asset)

    def _ensure_unique_identity(self, fields: dict, *, exclude_id=None) -> None:
        conflicts = self.assets.identity_conflicts(
            serial_number=fields.get("serial_number"),
            patrimony_tag=fields.get("patrimony_tag"),
            barcode=fields.get("barcode"),
            exclude_id=exclude_id,
        )
        if conflicts:
            raise AppError(ErrorCatalog.DUPLICATE_IDENTITY, details={"fields": conflicts})

    def mutate_status(self, asset: Asset, expected: AssetStatus, new_status: AssetStatus) -> Asset:
        """Flip a unique asset's status inside the caller's transaction.

        The UPDATE re-checks ``expected``, so of two concurrent callers that
        validated against the same status only one succeeds.
        """
        if not self.assets.compare_and_set_status(asset.id, expected, new_status):
            self.db.refresh(asset)
            raise AppError(
                ErrorCatalog.INVALID_STATE_TRANSITION,
                details={
                    "message": "asset status changed concurrently",
                    "asset_id": str(asset.id),
                    "expected": expected.value if expected else None,
                    "actual": asset.status.value if asset.status else None,
                },
            )
        self.db.refresh(asset, attribute_names=["status", "updated_at"])
        return asset

    def adjust_stock(self, asset: Asset, delta: int) -> Asset:
        """Apply ``delta`` to a consumable's pool inside the caller's transaction."""
        if delta < 0:
            if not self.assets.debit_stock(asset.id, -delta):
                self.db.refresh(asset)
                raise AppError(
                    ErrorCatalog.INSUFFICIENT_STOCK,
                    details={
                        "message": f"Insufficient stock. Available: {asset.stock_quantity}, requested: {-delta}",
                        "available": asset.stock_quantity,
                        "requested": -delta,
                    },
                )
        elif delta > 0:
            if not self.assets.credit_stock(asset.id, delta):
                raise AppError(
                    ErrorCatalog.INVALID_STATE_TRANSITION,
                    details={"message": "only consumables carry stock", "asset_id": str(asset.id)},
                )
        self.db.refresh(asset, attribute_names=["stock_quantity", "updated_at"])
        return asset

    def change_status(
        self,
        asset_id,
        new_status: AssetStatus,
        *,
        technician: str,
        notes: str,
    ) -> Movement:
        technician = require_text(technician, "technician")
        notes = require_text(notes, "notes")
        with atomic(self.db):
            asset = self.get_asset(asset_id, for_update=True)
            old_status = asset.status
            state_machine.resolve_transition(asset, state_machine.Operation.SET_STATUS, target=new_status)
            self.mutate_status(asset, old_status, new_status)
            movement = self.movements.append(
                new_movement(
                    asset,
                    state_machine.movement_type_for_status(new_status),
                    quantity=1,
                    technician=technician,
                    counterparty=_SYSTEM_COUNTERPARTY,
                    notes=join_notes(f"Status changed: {old_status.value} -> {new_status.value}.", notes),
                )
            )
        announce(
            logger,
            "asset.status_changed",
            movement,
            old_status=old_status.value,
            new_status=new_status.value,
        )
        return movement

    def add_stock(
        self,
        asset_id,
        quantity: int,
        *,
        technician: str,
        unit_value: Decimal | None = None,
        document: str | None = None,
        supplier: str | None = None,
    ) -> StockEntryResult:
        technician = require_text(technician, "technician")
        with atomic(self.db):
            asset = self.get_asset(asset_id, for_update=True)
            transition = state_machine.resolve_transition(asset, state_machine.Operation.STOCK_ENTRY)
            quantity = state_machine.effective_quantity(transition, quantity)
            previous_stock = asset.stock_quantity
            self.adjust_stock(asset, quantity)
            if unit_value is not None and unit_value > 0:
                asset.purchase_value = unit_value
            notes = " | ".join(
                part
                for part in (
                    f"Document: {document}" if document else None,
                    f"Supplier: {supplier}" if supplier else None,
                    f"Unit value: {Decimal(unit_value):.2f}" if unit_value else None,
                    f"Previous stock: {previous_stock}",
                    f"New stock: {asset.stock_quantity}",
                )
                if part
            )
            movement = self.movements.append(
                new_movement(
                    asset,
                    MovementType.STOCK_ENTRY,
                    quantity=quantity,
                    technician=technician,
                    counterparty=supplier or _SYSTEM_COUNTERPARTY,
                    notes=notes,
                )
            )
            new_stock = asset.stock_quantity
        announce(logger, "asset.stock_added", movement, previous_stock=previous_stock, new_stock=new_stock)
        return StockEntryResult(movement=movement, asset=asset, previous_stock=previous_stock, new_stock=new_stock)
