import uuid

import pytest

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import Asset, AssetKind, AssetStatus, MovementType
from app.assetflow.services.state_machine import (
    STOCKED,
    TRANSITIONS,
    Operation,
    QuantityRule,
    allowed_operations,
    current_state,
    effective_quantity,
    movement_type_for_status,
    resolve_transition,
)


def _unique(status: AssetStatus) -> Asset:
    return Asset(id=uuid.uuid4(), name="Monitor", kind=AssetKind.UNIQUE, status=status)


def _consumable(stock: int = 10) -> Asset:
    return Asset(id=uuid.uuid4(), name="Cable", kind=AssetKind.CONSUMABLE, status=None, stock_quantity=stock)


def test_consumables_live_in_stocked_pseudo_state():
    assert current_state(_consumable()) == STOCKED
    assert current_state(_unique(AssetStatus.IN_USE)) == AssetStatus.IN_USE


def test_unique_transfer_requires_available():
    transition = resolve_transition(_unique(AssetStatus.AVAILABLE), Operation.TRANSFER)
    assert transition.next_state == AssetStatus.IN_TRANSIT
    assert transition.movement_type == MovementType.TRANSFER
    assert transition.quantity_rule == QuantityRule.SINGLE_UNIT

    for status in (AssetStatus.IN_TRANSIT, AssetStatus.IN_USE, AssetStatus.MAINTENANCE, AssetStatus.DISCARDED):
        with pytest.raises(AppError) as excinfo:
            resolve_transition(_unique(status), Operation.TRANSFER)
        assert excinfo.value.error == ErrorCatalog.INVALID_STATE_TRANSITION
        assert excinfo.value.details["state"] == status.value


def test_receive_only_from_in_transit():
    transition = resolve_transition(_unique(AssetStatus.IN_TRANSIT), Operation.RECEIVE)
    assert transition.next_state == AssetStatus.AVAILABLE

    with pytest.raises(AppError) as excinfo:
        resolve_transition(_unique(AssetStatus.AVAILABLE), Operation.RECEIVE)
    assert excinfo.value.error == ErrorCatalog.INVALID_STATE_TRANSITION


def test_checkin_target_must_be_listed():
    asset = _unique(AssetStatus.IN_USE)
    assert resolve_transition(asset, Operation.CHECKIN, target=AssetStatus.MAINTENANCE)
    with pytest.raises(AppError) as excinfo:
        resolve_transition(asset, Operation.CHECKIN, target=AssetStatus.DISCARDED)
    assert excinfo.value.details["allowed_targets"] == ["AVAILABLE", "MAINTENANCE"]


def test_set_status_never_enters_or_leaves_transit():
    with pytest.raises(AppError):
        resolve_transition(_unique(AssetStatus.AVAILABLE), Operation.SET_STATUS, target=AssetStatus.IN_TRANSIT)
    with pytest.raises(AppError):
        resolve_transition(_unique(AssetStatus.IN_TRANSIT), Operation.SET_STATUS, target=AssetStatus.AVAILABLE)
    with pytest.raises(AppError):
        resolve_transition(_unique(AssetStatus.IN_USE), Operation.SET_STATUS, target=AssetStatus.IN_USE)


def test_consumables_have_no_status_operations():
    with pytest.raises(AppError):
        resolve_transition(_consumable(), Operation.CHECKOUT)
    assert allowed_operations(_consumable()) == ["RECEIVE", "STOCK_ENTRY", "TRANSFER"]


def test_every_transition_targets_a_known_state():
    for (kind, _state, _operation), transition in TRANSITIONS.items():
        for target in transition.next_states:
            if kind == AssetKind.CONSUMABLE:
                assert target == STOCKED
            else:
                assert target in AssetStatus


def test_debit_quantity_bounds():
    transition = resolve_transition(_consumable(), Operation.TRANSFER)
    assert effective_quantity(transition, 4, available=10) == 4
    assert effective_quantity(transition, None, available=10) == 1
    for requested in (0, -1, 11):
        with pytest.raises(AppError) as excinfo:
            effective_quantity(transition, requested, available=10)
        assert excinfo.value.error == ErrorCatalog.INSUFFICIENT_STOCK


def test_single_unit_ignores_requested_quantity():
    transition = resolve_transition(_unique(AssetStatus.AVAILABLE), Operation.TRANSFER)
    assert effective_quantity(transition, 7) == 1


def test_receipt_quantity_defaults_to_transferred_and_is_capped():
    transition = resolve_transition(_consumable(), Operation.RECEIVE)
    assert effective_quantity(transition, None, available=4) == 4
    assert effective_quantity(transition, 0, available=4) == 0
    with pytest.raises(AppError) as excinfo:
        effective_quantity(transition, 5, available=4)
    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR


def test_movement_type_for_status():
    assert movement_type_for_status(AssetStatus.MAINTENANCE) == MovementType.MAINTENANCE
    assert movement_type_for_status(AssetStatus.DISCARDED) == MovementType.DISPOSAL
    assert movement_type_for_status(AssetStatus.AVAILABLE) == MovementType.STATUS_CHANGE
