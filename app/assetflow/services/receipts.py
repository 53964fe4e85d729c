from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import AssetKind, Movement, MovementType
from app.assetflow.db.session import atomic
from app.assetflow.repos.movements import MovementRepository
from app.assetflow.services import state_machine
from app.assetflow.services.ledger import announce, join_notes, new_movement, require_text
from app.assetflow.services.registry import AssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Divergence:
    type: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ReceiptResult:
    receipt: Movement
    transfer: Movement
    has_divergence: bool


def receipt_notes(divergence: Divergence | None, notes: str | None) -> str:
    if divergence is None:
        return join_notes("Receipt confirmed.", notes)
    kind = (divergence.type or "").strip()
    detail = (divergence.description or "").strip() or kind
    header = "Receipt confirmed with divergence"
    if kind:
        header += f" [{kind}]"
    header += f": {detail}." if detail else "."
    return join_notes(header, notes)


class ReceiptReconciler:
    """Closes a pending transfer at its destination.

    A transfer is resolved at most once; the resolving receipt points back at
    it through ``resolves_movement_id``, which the database keeps unique.
    Divergence is recorded on the receipt and never blocks it.
    """

    def __init__(self, db):
        self.db = db
        self.registry = AssetRegistry(db)
        self.movements = MovementRepository(db)

    def _load_transfer(self, transfer_id: int, asset_id) -> Movement:
        transfer = self.movements.get(transfer_id, for_update=True)
        if transfer is None or transfer.type != MovementType.TRANSFER or transfer.asset_id != asset_id:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={
                    "message": "pending transfer not found for this asset",
                    "transfer_id": transfer_id,
                    "asset_id": str(asset_id),
                },
            )
        existing = self.movements.receipt_for(transfer.id)
        if existing is not None:
            raise AppError(
                ErrorCatalog.ALREADY_RESOLVED,
                details={"transfer_id": transfer.id, "receipt_id": existing.id},
            )
        return transfer

    def _lost_resolution_race(self, transfer_id: int, exc: IntegrityError) -> bool:
        if "resolves_movement_id" in str(exc.orig):
            return True
        return self.movements.receipt_for(transfer_id) is not None

    def confirm_receipt(
        self,
        transfer_id: int,
        asset_id,
        *,
        technician: str,
        received_quantity: int | None = None,
        divergence: Divergence | None = None,
        notes: str | None = None,
    ) -> ReceiptResult:
        technician = require_text(technician, "technician")
        try:
            with atomic(self.db):
                asset = self.registry.get_asset(asset_id, for_update=True)
                transfer = self._load_transfer(transfer_id, asset.id)
                transition = state_machine.resolve_transition(asset, state_machine.Operation.RECEIVE)
                if asset.kind == AssetKind.CONSUMABLE:
                    quantity = state_machine.effective_quantity(
                        transition, received_quantity, available=transfer.quantity
                    )
                    self.registry.adjust_stock(asset, quantity)
                else:
                    quantity = state_machine.effective_quantity(transition, received_quantity)
                    self.registry.mutate_status(asset, asset.status, transition.next_state)

                receipt = self.movements.append(
                    new_movement(
                        asset,
                        transition.movement_type,
                        quantity=quantity,
                        technician=technician,
                        counterparty=transfer.counterparty,
                        notes=receipt_notes(divergence, notes),
                        origin_store_id=transfer.origin_store_id,
                        destination_store_id=transfer.destination_store_id,
                        resolves_movement_id=transfer.id,
                    )
                )
        except IntegrityError as exc:
            if not self._lost_resolution_race(transfer_id, exc):
                raise
            raise AppError(ErrorCatalog.ALREADY_RESOLVED, details={"transfer_id": transfer_id}) from exc

        announce(
            logger,
            "receipt.confirmed",
            receipt,
            transfer_id=transfer.id,
            transferred_quantity=transfer.quantity,
            has_divergence=divergence is not None,
            divergence_type=divergence.type if divergence else None,
        )
        return ReceiptResult(receipt=receipt, transfer=transfer, has_divergence=divergence is not None)

    def pending_transfers(self, *, store_id=None) -> list[Movement]:
        return self.movements.pending_transfers(store_id=store_id)

    def pending_by_barcode(self, barcode: str, *, store_id=None) -> Movement:
        pending = self.movements.pending_transfers(store_id=store_id, barcode=barcode)
        if not pending:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": "no pending transfer for this barcode", "barcode": barcode},
            )
        return pending[0]
