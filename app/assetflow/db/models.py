import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator, CHAR


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class AssetKind(str, enum.Enum):
    UNIQUE = "UNIQUE"
    CONSUMABLE = "CONSUMABLE"


class AssetStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    IN_TRANSIT = "IN_TRANSIT"
    MAINTENANCE = "MAINTENANCE"
    DISCARDED = "DISCARDED"


class MovementType(str, enum.Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"
    TRANSFER = "TRANSFER"
    RECEIPT = "RECEIPT"
    MAINTENANCE = "MAINTENANCE"
    DISPOSAL = "DISPOSAL"
    STATUS_CHANGE = "STATUS_CHANGE"
    STOCK_ENTRY = "STOCK_ENTRY"


class LedgerImmutableError(Exception):
    def __init__(self, movement_id, operation: str):
        self.movement_id = movement_id
        self.operation = operation
        super().__init__(f"Movement ledger is append-only: cannot {operation} entry {movement_id}")


class Base(DeclarativeBase):
    pass


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    responsible: Mapped[str | None] = mapped_column(String(150), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand_model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    kind: Mapped[AssetKind] = mapped_column(
        Enum(AssetKind, name="asset_kind", native_enum=False, create_constraint=True, length=20),
        nullable=False,
    )
    status: Mapped[AssetStatus | None] = mapped_column(
        Enum(AssetStatus, name="asset_status", native_enum=False, create_constraint=True, length=20),
        nullable=True,
        index=True,
    )
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    serial_number: Mapped[str | None] = mapped_column(String(150), nullable=True, unique=True)
    patrimony_tag: Mapped[str | None] = mapped_column(String(150), nullable=True, unique=True)
    barcode: Mapped[str | None] = mapped_column(String(150), nullable=True, unique=True)
    purchase_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    warranty_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_assets_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_assets_min_stock_non_negative"),
        CheckConstraint(
            "(kind = 'UNIQUE' AND status IS NOT NULL) OR (kind = 'CONSUMABLE' AND status IS NULL)",
            name="ck_assets_status_matches_kind",
        ),
    )


class Movement(Base):
    """One immutable entry of the movement ledger."""

    __tablename__ = "movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    asset_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("assets.id"), index=True, nullable=False)
    type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, name="movement_type", native_enum=False, create_constraint=True, length=20),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    origin_store_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("stores.id"), index=True, nullable=True
    )
    destination_store_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("stores.id"), index=True, nullable=True
    )
    technician: Mapped[str] = mapped_column(String(150), nullable=False)
    counterparty: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    resolves_movement_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("movements.id"), nullable=True, unique=True
    )

    asset = relationship("Asset")
    origin_store = relationship("Store", foreign_keys=[origin_store_id])
    destination_store = relationship("Store", foreign_keys=[destination_store_id])

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_movements_quantity_non_negative"),)


@event.listens_for(Movement, "before_update")
def _prevent_movement_update(mapper, connection, target):
    raise LedgerImmutableError(target.id, "update")


@event.listens_for(Movement, "before_delete")
def _prevent_movement_delete(mapper, connection, target):
    raise LedgerImmutableError(target.id, "delete")


Index("ix_movements_asset_timestamp", Movement.asset_id, Movement.timestamp)
Index("ix_movements_destination_type", Movement.destination_store_id, Movement.type)


class ResponsibilityTerm(Base):
    """Signed-for custody record attached to a ledger entry."""

    __tablename__ = "responsibility_terms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    term_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    movement_id: Mapped[int] = mapped_column(Integer, ForeignKey("movements.id"), index=True, nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_cpf: Mapped[str] = mapped_column(String(20), nullable=False)
    recipient_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recipient_unit: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[str] = mapped_column(String(150), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    movement = relationship("Movement")
