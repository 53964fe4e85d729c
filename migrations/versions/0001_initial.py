"""stores, assets and the movement ledger

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


ASSET_KINDS = ("UNIQUE", "CONSUMABLE")
ASSET_STATUSES = ("AVAILABLE", "IN_USE", "IN_TRANSIT", "MAINTENANCE", "DISCARDED")
MOVEMENT_TYPES = (
    "ENTRY",
    "EXIT",
    "TRANSFER",
    "RECEIPT",
    "MAINTENANCE",
    "DISPOSAL",
    "STATUS_CHANGE",
    "STOCK_ENTRY",
)


def _enum(values, name):
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=20)


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("responsible", sa.String(length=150), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "assets",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("brand_model", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("kind", _enum(ASSET_KINDS, "asset_kind"), nullable=False),
        sa.Column("status", _enum(ASSET_STATUSES, "asset_status"), nullable=True),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("serial_number", sa.String(length=150), nullable=True),
        sa.Column("patrimony_tag", sa.String(length=150), nullable=True),
        sa.Column("barcode", sa.String(length=150), nullable=True),
        sa.Column("purchase_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("warranty_expiry", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("serial_number", name="uq_assets_serial_number"),
        sa.UniqueConstraint("patrimony_tag", name="uq_assets_patrimony_tag"),
        sa.UniqueConstraint("barcode", name="uq_assets_barcode"),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_assets_stock_non_negative"),
        sa.CheckConstraint("min_stock >= 0", name="ck_assets_min_stock_non_negative"),
        sa.CheckConstraint(
            "(kind = 'UNIQUE' AND status IS NOT NULL) OR (kind = 'CONSUMABLE' AND status IS NULL)",
            name="ck_assets_status_matches_kind",
        ),
    )
    op.create_index("ix_assets_category", "assets", ["category"], unique=False)
    op.create_index("ix_assets_status", "assets", ["status"], unique=False)

    op.create_table(
        "movements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("asset_id", GUID(), sa.ForeignKey("assets.id"), nullable=False),
        sa.Column("type", _enum(MOVEMENT_TYPES, "movement_type"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("origin_store_id", GUID(), sa.ForeignKey("stores.id"), nullable=True),
        sa.Column("destination_store_id", GUID(), sa.ForeignKey("stores.id"), nullable=True),
        sa.Column("technician", sa.String(length=150), nullable=False),
        sa.Column("counterparty", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("resolves_movement_id", sa.Integer(), sa.ForeignKey("movements.id"), nullable=True),
        sa.UniqueConstraint("resolves_movement_id", name="uq_movements_resolves_movement_id"),
        sa.CheckConstraint("quantity >= 0", name="ck_movements_quantity_non_negative"),
    )
    op.create_index("ix_movements_asset_id", "movements", ["asset_id"], unique=False)
    op.create_index("ix_movements_type", "movements", ["type"], unique=False)
    op.create_index("ix_movements_origin_store_id", "movements", ["origin_store_id"], unique=False)
    op.create_index("ix_movements_destination_store_id", "movements", ["destination_store_id"], unique=False)
    op.create_index("ix_movements_timestamp", "movements", ["timestamp"], unique=False)
    op.create_index("ix_movements_asset_timestamp", "movements", ["asset_id", "timestamp"], unique=False)
    op.create_index("ix_movements_destination_type", "movements", ["destination_store_id", "type"], unique=False)


def downgrade() -> None:
    op.drop_table("movements")
    op.drop_index("ix_assets_status", table_name="assets")
    op.drop_index("ix_assets_category", table_name="assets")
    op.drop_table("assets")
    op.drop_table("stores")
