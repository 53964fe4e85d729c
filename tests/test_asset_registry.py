from decimal import Decimal

import pytest

from app.assetflow.core.error_catalog import AppError, ErrorCatalog
from app.assetflow.db.models import AssetKind, AssetStatus, MovementType
from app.assetflow.repos.assets import AssetQueryFilters
from app.assetflow.services.registry import AssetRegistry
from app.assetflow.services.transfers import TransferEngine
from tests.asset_helpers import create_consumable, create_store, create_unique_asset, ledger_count, reload_asset


def test_create_unique_asset_defaults_to_available(db_session):
    asset = AssetRegistry(db_session).create_asset(
        name="ThinkPad T14",
        kind=AssetKind.UNIQUE,
        serial_number=" PF-123 ",
        purchase_value=Decimal("5499.90"),
    )

    assert asset.status == AssetStatus.AVAILABLE
    assert asset.serial_number == "PF-123"
    assert asset.stock_quantity == 0
    assert ledger_count(db_session, asset.id) == 0


def test_unique_asset_needs_an_identity_field(db_session):
    with pytest.raises(AppError) as excinfo:
        AssetRegistry(db_session).create_asset(name="Mystery box", kind=AssetKind.UNIQUE)

    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR


def test_cannot_register_in_transit(db_session):
    with pytest.raises(AppError) as excinfo:
        AssetRegistry(db_session).create_asset(
            name="Switch", kind=AssetKind.UNIQUE, status=AssetStatus.IN_TRANSIT, patrimony_tag="PAT-9"
        )

    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR


def test_consumable_registration_carries_no_status(db_session):
    asset = AssetRegistry(db_session).create_asset(
        name="RJ45 connector",
        kind=AssetKind.CONSUMABLE,
        status=AssetStatus.IN_USE,
        stock_quantity=100,
        min_stock=20,
    )

    assert asset.status is None
    assert asset.stock_quantity == 100

    with pytest.raises(AppError) as excinfo:
        AssetRegistry(db_session).create_asset(name="Labels", kind=AssetKind.CONSUMABLE, stock_quantity=-1)
    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR


def test_duplicate_identity_rejected(db_session):
    registry = AssetRegistry(db_session)
    registry.create_asset(name="Router", serial_number="SN-1", barcode="111")

    with pytest.raises(AppError) as excinfo:
        registry.create_asset(name="Router 2", serial_number="SN-1", barcode="111")

    assert excinfo.value.error == ErrorCatalog.DUPLICATE_IDENTITY
    assert excinfo.value.details["fields"] == ["serial_number", "barcode"]


def test_update_touches_descriptive_fields_only(db_session):
    asset = create_unique_asset(db_session)
    registry = AssetRegistry(db_session)

    updated = registry.update_asset(asset.id, {"name": "Renamed", "category": "Laptops"})
    assert updated.name == "Renamed"
    assert updated.category == "Laptops"

    with pytest.raises(AppError) as excinfo:
        registry.update_asset(asset.id, {"status": AssetStatus.DISCARDED})
    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR
    assert excinfo.value.details["fields"] == ["status"]

    with pytest.raises(AppError):
        registry.update_asset(asset.id, {"serial_number": None})


def test_delete_only_unreferenced_assets(db_session):
    store = create_store(db_session)
    referenced = create_unique_asset(db_session)
    unreferenced = create_unique_asset(db_session)
    TransferEngine(db_session).transfer(referenced.id, store.id, 1, technician="ana")
    registry = AssetRegistry(db_session)

    with pytest.raises(AppError) as excinfo:
        registry.delete_asset(referenced.id)
    assert excinfo.value.error == ErrorCatalog.ASSET_REFERENCED

    registry.delete_asset(unreferenced.id)
    with pytest.raises(AppError) as excinfo:
        registry.get_asset(unreferenced.id)
    assert excinfo.value.error == ErrorCatalog.NOT_FOUND


def test_change_status_appends_typed_entry(db_session):
    asset = create_unique_asset(db_session)
    registry = AssetRegistry(db_session)

    movement = registry.change_status(
        asset.id, AssetStatus.MAINTENANCE, technician="ana", notes="Screen flicker"
    )

    assert movement.type == MovementType.MAINTENANCE
    assert movement.counterparty == "System"
    assert movement.notes == "Status changed: AVAILABLE -> MAINTENANCE. Screen flicker"
    assert reload_asset(db_session, asset.id).status == AssetStatus.MAINTENANCE

    disposal = registry.change_status(asset.id, AssetStatus.DISCARDED, technician="ana", notes="Beyond repair")
    assert disposal.type == MovementType.DISPOSAL

    with pytest.raises(AppError) as excinfo:
        registry.change_status(asset.id, AssetStatus.DISCARDED, technician="ana", notes="again")
    assert excinfo.value.error == ErrorCatalog.INVALID_STATE_TRANSITION
    assert ledger_count(db_session, asset.id) == 2


def test_change_status_requires_notes(db_session):
    asset = create_unique_asset(db_session)

    with pytest.raises(AppError) as excinfo:
        AssetRegistry(db_session).change_status(asset.id, AssetStatus.IN_USE, technician="ana", notes=" ")

    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR
    assert ledger_count(db_session, asset.id) == 0


def test_add_stock_records_previous_and_new(db_session):
    consumable = create_consumable(db_session, stock_quantity=3)

    result = AssetRegistry(db_session).add_stock(
        consumable.id,
        7,
        technician="ana",
        unit_value=Decimal("12.50"),
        document="NF-4411",
        supplier="Kalunga",
    )

    assert result.previous_stock == 3
    assert result.new_stock == 10
    assert result.movement.type == MovementType.STOCK_ENTRY
    assert result.movement.counterparty == "Kalunga"
    assert result.movement.notes == (
        "Document: NF-4411 | Supplier: Kalunga | Unit value: 12.50 | Previous stock: 3 | New stock: 10"
    )
    assert reload_asset(db_session, consumable.id).purchase_value == Decimal("12.50")


def test_add_stock_rejected_for_unique_assets_and_bad_quantity(db_session):
    asset = create_unique_asset(db_session)
    consumable = create_consumable(db_session)
    registry = AssetRegistry(db_session)

    with pytest.raises(AppError) as excinfo:
        registry.add_stock(asset.id, 1, technician="ana")
    assert excinfo.value.error == ErrorCatalog.INVALID_STATE_TRANSITION

    with pytest.raises(AppError) as excinfo:
        registry.add_stock(consumable.id, 0, technician="ana")
    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR


def test_low_stock_and_listing(db_session):
    low = create_consumable(db_session, stock_quantity=5, min_stock=5)
    create_consumable(db_session, stock_quantity=50, min_stock=5)
    create_unique_asset(db_session, barcode="555")
    registry = AssetRegistry(db_session)

    assert [asset.id for asset in registry.low_stock()] == [low.id]

    rows, total = registry.list_assets(AssetQueryFilters(kind=AssetKind.CONSUMABLE), page=1, page_size=10)
    assert total == 2
    assert {row.kind for row in rows} == {AssetKind.CONSUMABLE}

    rows, total = registry.list_assets(AssetQueryFilters(q="555"), page=1, page_size=10)
    assert total == 1
    assert registry.get_by_barcode("555").id == rows[0].id


def test_discarded_assets_are_hidden_from_barcode_lookup(db_session):
    create_unique_asset(db_session, status=AssetStatus.DISCARDED, barcode="999")

    with pytest.raises(AppError) as excinfo:
        AssetRegistry(db_session).get_by_barcode("999")

    assert excinfo.value.error == ErrorCatalog.NOT_FOUND
