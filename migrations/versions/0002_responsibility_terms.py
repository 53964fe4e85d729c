"""responsibility terms

Revision ID: 0002_responsibility_terms
Revises: 0001_initial
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_responsibility_terms"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "responsibility_terms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("term_number", sa.String(length=100), nullable=False),
        sa.Column("movement_id", sa.Integer(), sa.ForeignKey("movements.id"), nullable=False),
        sa.Column("recipient_name", sa.String(length=255), nullable=False),
        sa.Column("recipient_cpf", sa.String(length=20), nullable=False),
        sa.Column("recipient_email", sa.String(length=255), nullable=True),
        sa.Column("recipient_unit", sa.String(length=255), nullable=False),
        sa.Column("created_by", sa.String(length=150), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("term_number", name="uq_responsibility_terms_term_number"),
    )
    op.create_index(
        "ix_responsibility_terms_movement_id", "responsibility_terms", ["movement_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_responsibility_terms_movement_id", table_name="responsibility_terms")
    op.drop_table("responsibility_terms")
