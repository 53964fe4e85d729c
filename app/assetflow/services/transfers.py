from __future__ import annotations

import logging

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import AssetKind, AssetStatus, Movement
from app.assetflow.db.session import atomic
from app.assetflow.repos.movements import MovementRepository
from app.assetflow.repos.stores import StoreRepository
from app.assetflow.services import state_machine
from app.assetflow.services.ledger import announce, new_movement, require_text
from app.assetflow.services.registry import AssetRegistry

logger = logging.getLogger(__name__)

_DEFAULT_TRANSFER_COUNTERPARTY = "Transfer"


class TransferEngine:
    """Outbound side of the movement state machine.

    Each operation validates, mutates the asset and appends its ledger entry
    in one transaction; a failure at any step leaves neither behind.
    """

    def __init__(self, db):
        self.db = db
        self.registry = AssetRegistry(db)
        self.movements = MovementRepository(db)
        self.stores = StoreRepository(db)

    def _require_store(self, store_id, *, role: str):
        store = self.stores.get_by_id(store_id)
        if store is None:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": f"{role} store not found", "store_id": str(store_id)},
            )
        return store

    def _current_store_id(self, asset_id):
        entry = self.movements.latest_location_entry(asset_id)
        return entry.destination_store_id if entry is not None else None

    def transfer(
        self,
        asset_id,
        destination_store_id,
        quantity: int | None = None,
        *,
        technician: str,
        counterparty: str | None = None,
        notes: str | None = None,
    ) -> Movement:
        technician = require_text(technician, "technician")
        counterparty = (counterparty or "").strip() or _DEFAULT_TRANSFER_COUNTERPARTY
        with atomic(self.db):
            asset = self.registry.get_asset(asset_id, for_update=True)
            transition = state_machine.resolve_transition(asset, state_machine.Operation.TRANSFER)
            quantity = state_machine.effective_quantity(transition, quantity, available=asset.stock_quantity)
            self._require_store(destination_store_id, role="destination")
            origin_store_id = self._current_store_id(asset.id)

            if asset.kind == AssetKind.CONSUMABLE:
                self.registry.adjust_stock(asset, -quantity)
            else:
                self.registry.mutate_status(asset, asset.status, transition.next_state)

            movement = self.movements.append(
                new_movement(
                    asset,
                    transition.movement_type,
                    quantity=quantity,
                    technician=technician,
                    counterparty=counterparty,
                    notes=notes,
                    origin_store_id=origin_store_id,
                    destination_store_id=destination_store_id,
                )
            )
        announce(logger, "transfer.created", movement, asset_kind=asset.kind.value)
        return movement

    def checkout(
        self,
        asset_id,
        *,
        technician: str,
        counterparty: str,
        destination_store_id=None,
        notes: str | None = None,
    ) -> Movement:
        technician = require_text(technician, "technician")
        counterparty = require_text(counterparty, "counterparty")
        with atomic(self.db):
            asset = self.registry.get_asset(asset_id, for_update=True)
            transition = state_machine.resolve_transition(asset, state_machine.Operation.CHECKOUT)
            if destination_store_id is not None:
                self._require_store(destination_store_id, role="destination")
            self.registry.mutate_status(asset, asset.status, transition.next_state)
            movement = self.movements.append(
                new_movement(
                    asset,
                    transition.movement_type,
                    quantity=1,
                    technician=technician,
                    counterparty=counterparty,
                    notes=notes,
                    origin_store_id=self._current_store_id(asset.id),
                    destination_store_id=destination_store_id,
                )
            )
        announce(logger, "asset.checked_out", movement)
        return movement

    def checkin(
        self,
        asset_id,
        *,
        technician: str,
        counterparty: str,
        status: AssetStatus = AssetStatus.AVAILABLE,
        notes: str | None = None,
    ) -> Movement:
        technician = require_text(technician, "technician")
        counterparty = require_text(counterparty, "counterparty")
        with atomic(self.db):
            asset = self.registry.get_asset(asset_id, for_update=True)
            transition = state_machine.resolve_transition(asset, state_machine.Operation.CHECKIN, target=status)
            self.registry.mutate_status(asset, asset.status, status)
            movement = self.movements.append(
                new_movement(
                    asset,
                    transition.movement_type,
                    quantity=1,
                    technician=technician,
                    counterparty=counterparty,
                    notes=notes,
                    destination_store_id=self._current_store_id(asset.id),
                )
            )
        announce(logger, "asset.checked_in", movement, new_status=status.value)
        return movement
