"""Asset movement state machine.

Every state-changing operation on an asset is looked up once in
``TRANSITIONS`` by ``(kind, current state, operation)``. The entry says
which state follows, how the requested quantity is treated and which
ledger entry type records the change. Consumables have no status; they
sit in the single pseudo-state ``STOCKED`` and only their quantity moves.

Unique assets are identity-preserving: a transfer flips an exclusive
status flag and always moves exactly one unit. Consumables are
quantity-conserving: a transfer debits the pool, a receipt credits it,
and several transfers may draw on the same pool.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import Asset, AssetKind, AssetStatus, MovementType


STOCKED = "STOCKED"


class Operation(str, enum.Enum):
    TRANSFER = "TRANSFER"
    RECEIVE = "RECEIVE"
    CHECKOUT = "CHECKOUT"
    CHECKIN = "CHECKIN"
    SET_STATUS = "SET_STATUS"
    STOCK_ENTRY = "STOCK_ENTRY"


class QuantityRule(str, enum.Enum):
    SINGLE_UNIT = "SINGLE_UNIT"
    DEBIT = "DEBIT"
    CREDIT_UP_TO_TRANSFERRED = "CREDIT_UP_TO_TRANSFERRED"
    CREDIT = "CREDIT"


@dataclass(frozen=True)
class Transition:
    next_states: tuple
    quantity_rule: QuantityRule
    movement_type: MovementType | None

    @property
    def next_state(self):
        return self.next_states[0]


_SETTABLE_STATUSES = (
    AssetStatus.AVAILABLE,
    AssetStatus.IN_USE,
    AssetStatus.MAINTENANCE,
    AssetStatus.DISCARDED,
)


def _build_transitions() -> dict[tuple, Transition]:
    table = {
        (AssetKind.UNIQUE, AssetStatus.AVAILABLE, Operation.TRANSFER): Transition(
            (AssetStatus.IN_TRANSIT,), QuantityRule.SINGLE_UNIT, MovementType.TRANSFER
        ),
        (AssetKind.UNIQUE, AssetStatus.IN_TRANSIT, Operation.RECEIVE): Transition(
            (AssetStatus.AVAILABLE,), QuantityRule.SINGLE_UNIT, MovementType.RECEIPT
        ),
        (AssetKind.UNIQUE, AssetStatus.AVAILABLE, Operation.CHECKOUT): Transition(
            (AssetStatus.IN_USE,), QuantityRule.SINGLE_UNIT, MovementType.EXIT
        ),
        (AssetKind.UNIQUE, AssetStatus.IN_USE, Operation.CHECKIN): Transition(
            (AssetStatus.AVAILABLE, AssetStatus.MAINTENANCE), QuantityRule.SINGLE_UNIT, MovementType.ENTRY
        ),
        (AssetKind.CONSUMABLE, STOCKED, Operation.TRANSFER): Transition(
            (STOCKED,), QuantityRule.DEBIT, MovementType.TRANSFER
        ),
        (AssetKind.CONSUMABLE, STOCKED, Operation.RECEIVE): Transition(
            (STOCKED,), QuantityRule.CREDIT_UP_TO_TRANSFERRED, MovementType.RECEIPT
        ),
        (AssetKind.CONSUMABLE, STOCKED, Operation.STOCK_ENTRY): Transition(
            (STOCKED,), QuantityRule.CREDIT, MovementType.STOCK_ENTRY
        ),
    }
    # Direct admin changes: any non-transit status to any other non-transit
    # status. The ledger type depends on the target, see movement_type_for_status.
    for current in _SETTABLE_STATUSES:
        table[(AssetKind.UNIQUE, current, Operation.SET_STATUS)] = Transition(
            tuple(status for status in _SETTABLE_STATUSES if status != current),
            QuantityRule.SINGLE_UNIT,
            None,
        )
    return table


TRANSITIONS: dict[tuple, Transition] = _build_transitions()


def current_state(asset: Asset):
    if asset.kind == AssetKind.CONSUMABLE:
        return STOCKED
    return asset.status


def _label(value) -> str:
    return value.value if isinstance(value, enum.Enum) else str(value)


def resolve_transition(asset: Asset, operation: Operation, target=None) -> Transition:
    """Return the transition for ``operation`` on ``asset`` or raise INVALID_STATE_TRANSITION.

    ``target`` selects among several allowed next states (check-in, admin
    status change); when omitted the first allowed state is used.
    """
    state = _label(current_state(asset))
    kind = _label(asset.kind)
    transition = TRANSITIONS.get((asset.kind, current_state(asset), operation))
    if transition is None:
        raise AppError(
            ErrorCatalog.INVALID_STATE_TRANSITION,
            details={
                "message": f"{operation.value} is not allowed for a {kind} asset in state {state}",
                "asset_id": str(asset.id),
                "kind": kind,
                "state": state,
                "operation": operation.value,
                "allowed_operations": allowed_operations(asset),
            },
        )
    if target is not None and target not in transition.next_states:
        raise AppError(
            ErrorCatalog.INVALID_STATE_TRANSITION,
            details={
                "message": f"{operation.value} cannot move a {kind} asset from {state} to {_label(target)}",
                "asset_id": str(asset.id),
                "state": state,
                "target": _label(target),
                "allowed_targets": [_label(status) for status in transition.next_states],
            },
        )
    return transition


def allowed_operations(asset: Asset) -> list[str]:
    state = current_state(asset)
    return sorted(
        operation.value for (kind, from_state, operation) in TRANSITIONS if kind == asset.kind and from_state == state
    )


def movement_type_for_status(status: AssetStatus) -> MovementType:
    if status == AssetStatus.MAINTENANCE:
        return MovementType.MAINTENANCE
    if status == AssetStatus.DISCARDED:
        return MovementType.DISPOSAL
    return MovementType.STATUS_CHANGE


def effective_quantity(transition: Transition, requested: int | None, *, available: int | None = None) -> int:
    """Apply the transition's quantity rule; ``available`` is the bound for DEBIT / CREDIT_UP_TO_TRANSFERRED."""
    if transition.quantity_rule == QuantityRule.SINGLE_UNIT:
        return 1
    if transition.quantity_rule == QuantityRule.DEBIT:
        quantity = 1 if requested is None else requested
        if quantity < 1 or available is None or quantity > available:
            raise AppError(
                ErrorCatalog.INSUFFICIENT_STOCK,
                details={
                    "message": f"Insufficient stock. Available: {available}, requested: {quantity}",
                    "available": available,
                    "requested": quantity,
                },
            )
        return quantity
    if transition.quantity_rule == QuantityRule.CREDIT_UP_TO_TRANSFERRED:
        quantity = available if requested is None else requested
        if quantity < 0 or quantity > available:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={
                    "message": f"received_quantity must be between 0 and {available}",
                    "received_quantity": quantity,
                    "transferred_quantity": available,
                },
            )
        return quantity
    quantity = requested or 0
    if quantity < 1:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "quantity must be at least 1", "quantity": quantity},
        )
    return quantity
