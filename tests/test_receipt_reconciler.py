import pytest
from sqlalchemy.exc import IntegrityError

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import AssetStatus, MovementType
from app.assetflow.repos.movements import MovementRepository
from app.assetflow.services.receipts import Divergence, ReceiptReconciler, receipt_notes
from app.assetflow.services.transfers import TransferEngine
from tests.asset_helpers import (
    create_consumable,
    create_store,
    create_unique_asset,
    ledger_count,
    reload_asset,
)


def test_partial_receipt_with_divergence(db_session):
    store = create_store(db_session, name="Store 2")
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")
    assert reload_asset(db_session, consumable.id).stock_quantity == 6

    result = ReceiptReconciler(db_session).confirm_receipt(
        transfer.id,
        consumable.id,
        technician="bruno",
        received_quantity=3,
        divergence=Divergence(type="damaged", description="1 unit broken"),
    )

    assert result.has_divergence is True
    assert result.receipt.quantity == 3
    assert result.receipt.resolves_movement_id == transfer.id
    assert "1 unit broken" in result.receipt.notes
    assert result.receipt.notes.startswith("Receipt confirmed with divergence [damaged]")
    assert reload_asset(db_session, consumable.id).stock_quantity == 9


def test_full_receipt_is_assumed_when_quantity_omitted(db_session):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")

    result = ReceiptReconciler(db_session).confirm_receipt(
        transfer.id, consumable.id, technician="bruno", notes="All boxes sealed"
    )

    assert result.has_divergence is False
    assert result.receipt.quantity == 4
    assert result.receipt.notes == "Receipt confirmed. All boxes sealed"
    assert result.receipt.destination_store_id == store.id
    assert reload_asset(db_session, consumable.id).stock_quantity == 10


def test_receipt_cannot_create_stock(db_session):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")

    with pytest.raises(AppError) as excinfo:
        ReceiptReconciler(db_session).confirm_receipt(
            transfer.id, consumable.id, technician="bruno", received_quantity=5
        )

    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR
    assert reload_asset(db_session, consumable.id).stock_quantity == 6
    assert ledger_count(db_session, consumable.id) == 1


def test_second_confirmation_is_rejected(db_session):
    store = create_store(db_session)
    asset = create_unique_asset(db_session)
    transfer = TransferEngine(db_session).transfer(asset.id, store.id, 1, technician="ana")
    reconciler = ReceiptReconciler(db_session)

    first = reconciler.confirm_receipt(transfer.id, asset.id, technician="bruno")
    with pytest.raises(AppError) as excinfo:
        reconciler.confirm_receipt(transfer.id, asset.id, technician="bruno")

    assert excinfo.value.error == ErrorCatalog.ALREADY_RESOLVED
    assert excinfo.value.details["receipt_id"] == first.receipt.id
    assert reload_asset(db_session, asset.id).status == AssetStatus.AVAILABLE
    assert ledger_count(db_session, asset.id) == 2


def test_consumable_second_confirmation_leaves_stock_unchanged(db_session):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")
    reconciler = ReceiptReconciler(db_session)
    reconciler.confirm_receipt(transfer.id, consumable.id, technician="bruno", received_quantity=2)

    with pytest.raises(AppError) as excinfo:
        reconciler.confirm_receipt(transfer.id, consumable.id, technician="bruno", received_quantity=2)

    assert excinfo.value.error == ErrorCatalog.ALREADY_RESOLVED
    assert reload_asset(db_session, consumable.id).stock_quantity == 8


def test_unique_constraint_race_surfaces_as_already_resolved(db_session, monkeypatch):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")
    reconciler = ReceiptReconciler(db_session)
    reconciler.confirm_receipt(transfer.id, consumable.id, technician="bruno")

    # A concurrent confirmation that passed the lookup before the first commit.
    monkeypatch.setattr(MovementRepository, "receipt_for", lambda self, transfer_id: None)
    with pytest.raises(AppError) as excinfo:
        reconciler.confirm_receipt(transfer.id, consumable.id, technician="carla")

    assert excinfo.value.error == ErrorCatalog.ALREADY_RESOLVED
    assert reload_asset(db_session, consumable.id).stock_quantity == 10
    assert ledger_count(db_session, consumable.id) == 2


def test_other_integrity_errors_are_not_masked(db_session, monkeypatch):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=10)
    transfer = TransferEngine(db_session).transfer(consumable.id, store.id, 4, technician="ana")

    def _fail(self, movement):
        raise IntegrityError("INSERT INTO movements", {}, Exception("NOT NULL constraint failed: movements.counterparty"))

    monkeypatch.setattr(MovementRepository, "append", _fail)
    with pytest.raises(IntegrityError):
        ReceiptReconciler(db_session).confirm_receipt(transfer.id, consumable.id, technician="bruno")

    assert reload_asset(db_session, consumable.id).stock_quantity == 6
    assert ledger_count(db_session, consumable.id) == 1


@pytest.mark.parametrize(
    "initial, steps",
    [
        (10, [(4, 3), (6, None)]),
        (10, [(4, 4), (3, 0), (2, 1)]),
        (5, [(5, 2), (2, 2), (2, None), (1, 0)]),
        (8, [(3, None), (5, 4), (4, 4), (4, 1)]),
    ],
)
def test_stock_is_conserved_across_transfers_and_receipts(db_session, initial, steps):
    store = create_store(db_session)
    consumable = create_consumable(db_session, stock_quantity=initial)
    engine = TransferEngine(db_session)
    reconciler = ReceiptReconciler(db_session)
    transferred = received = 0

    for quantity, received_quantity in steps:
        transfer = engine.transfer(consumable.id, store.id, quantity, technician="ana")
        result = reconciler.confirm_receipt(
            transfer.id, consumable.id, technician="bruno", received_quantity=received_quantity
        )
        transferred += quantity
        received += result.receipt.quantity
        stock = reload_asset(db_session, consumable.id).stock_quantity
        assert stock == initial - transferred + received
        assert stock >= 0

    assert received <= transferred


def test_unknown_or_mismatched_transfer_is_not_found(db_session):
    store = create_store(db_session)
    asset = create_unique_asset(db_session)
    other = create_unique_asset(db_session)
    transfer = TransferEngine(db_session).transfer(asset.id, store.id, 1, technician="ana")
    reconciler = ReceiptReconciler(db_session)

    with pytest.raises(AppError) as excinfo:
        reconciler.confirm_receipt(999999, asset.id, technician="bruno")
    assert excinfo.value.error == ErrorCatalog.NOT_FOUND

    with pytest.raises(AppError) as excinfo:
        reconciler.confirm_receipt(transfer.id, other.id, technician="bruno")
    assert excinfo.value.error == ErrorCatalog.NOT_FOUND


def test_non_transfer_entry_is_not_found(db_session):
    asset = create_unique_asset(db_session)
    exit_entry = TransferEngine(db_session).checkout(asset.id, technician="ana", counterparty="Carla")

    with pytest.raises(AppError) as excinfo:
        ReceiptReconciler(db_session).confirm_receipt(exit_entry.id, asset.id, technician="bruno")

    assert excinfo.value.error == ErrorCatalog.NOT_FOUND


def test_pending_transfers_and_barcode_lookup(db_session):
    store_a = create_store(db_session)
    store_b = create_store(db_session)
    scanner_asset = create_unique_asset(db_session, barcode="7891000100103")
    consumable = create_consumable(db_session, stock_quantity=10)
    engine = TransferEngine(db_session)
    reconciler = ReceiptReconciler(db_session)

    pending_unique = engine.transfer(scanner_asset.id, store_a.id, 1, technician="ana")
    resolved = engine.transfer(consumable.id, store_b.id, 2, technician="ana")
    open_consumable = engine.transfer(consumable.id, store_b.id, 3, technician="ana")
    reconciler.confirm_receipt(resolved.id, consumable.id, technician="bruno")

    all_pending = [movement.id for movement in reconciler.pending_transfers()]
    assert sorted(all_pending) == sorted([pending_unique.id, open_consumable.id])
    assert [m.id for m in reconciler.pending_transfers(store_id=store_b.id)] == [open_consumable.id]
    assert all(m.type == MovementType.TRANSFER for m in reconciler.pending_transfers())

    found = reconciler.pending_by_barcode("7891000100103")
    assert found.id == pending_unique.id
    with pytest.raises(AppError) as excinfo:
        reconciler.pending_by_barcode("7891000100103", store_id=store_b.id)
    assert excinfo.value.error == ErrorCatalog.NOT_FOUND


def test_receipt_notes_format():
    assert receipt_notes(None, None) == "Receipt confirmed."
    assert (
        receipt_notes(Divergence(type="missing", description="2 boxes short"), "Driver notified")
        == "Receipt confirmed with divergence [missing]: 2 boxes short. Driver notified"
    )
    assert receipt_notes(Divergence(type="damaged"), None) == "Receipt confirmed with divergence [damaged]: damaged."
    assert receipt_notes(Divergence(description="box opened"), None) == "Receipt confirmed with divergence: box opened."
    assert receipt_notes(Divergence(), "Checked") == "Receipt confirmed with divergence. Checked"
