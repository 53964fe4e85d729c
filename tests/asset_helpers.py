from __future__ import annotations

import uuid

from sqlalchemy import func, select

from app.assetflow.db.models import Asset, AssetKind, AssetStatus, Movement, Store


def create_store(db_session, *, name: str | None = None) -> Store:
    store = Store(id=uuid.uuid4(), name=name or f"Store {uuid.uuid4().hex[:6]}", city="Recife")
    db_session.add(store)
    db_session.commit()
    return store


def create_unique_asset(
    db_session,
    *,
    status: AssetStatus = AssetStatus.AVAILABLE,
    barcode: str | None = None,
    purchase_value=None,
) -> Asset:
    suffix = uuid.uuid4().hex[:8]
    asset = Asset(
        id=uuid.uuid4(),
        name=f"Notebook {suffix}",
        brand_model="Dell Latitude 5440",
        category="Notebook",
        kind=AssetKind.UNIQUE,
        status=status,
        serial_number=f"SN-{suffix}",
        barcode=barcode,
        purchase_value=purchase_value,
    )
    db_session.add(asset)
    db_session.commit()
    return asset


def create_consumable(
    db_session,
    *,
    stock_quantity: int = 10,
    min_stock: int = 5,
    barcode: str | None = None,
) -> Asset:
    suffix = uuid.uuid4().hex[:8]
    asset = Asset(
        id=uuid.uuid4(),
        name=f"Toner {suffix}",
        category="Supplies",
        kind=AssetKind.CONSUMABLE,
        status=None,
        stock_quantity=stock_quantity,
        min_stock=min_stock,
        barcode=barcode,
    )
    db_session.add(asset)
    db_session.commit()
    return asset


def ledger_count(db_session, asset_id) -> int:
    return db_session.scalar(select(func.count()).select_from(Movement).where(Movement.asset_id == asset_id))


def reload_asset(db_session, asset_id) -> Asset:
    db_session.expire_all()
    return db_session.get(Asset, asset_id)
