"""Create users (with refresh token fingerprint) and vehicles tables.

Revision ID: 20251101000000
Revises:
Create Date: 2025-11-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20251101000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("plate_number", sa.String(length=32), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=False),
        sa.Column("manufacturer", sa.String(length=255), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("sim_number", sa.String(length=32), nullable=True),
        sa.Column("device_id", sa.String(length=255), nullable=True),
        sa.Column("driver_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["driver_id"],
            ["users.id"],
            name=op.f("fk_vehicles_driver_id_users"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vehicles")),
    )
    op.create_index(op.f("ix_vehicles_plate_number"), "vehicles", ["plate_number"], unique=True)
    op.create_index(op.f("ix_vehicles_manufacturer"), "vehicles", ["manufacturer"], unique=False)
    op.create_index(op.f("ix_vehicles_type"), "vehicles", ["type"], unique=False)
    op.create_index(op.f("ix_vehicles_driver_id"), "vehicles", ["driver_id"], unique=True)
    op.create_index(op.f("ix_vehicles_created_at"), "vehicles", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_vehicles_created_at"), table_name="vehicles")
    op.drop_index(op.f("ix_vehicles_driver_id"), table_name="vehicles")
    op.drop_index(op.f("ix_vehicles_type"), table_name="vehicles")
    op.drop_index(op.f("ix_vehicles_manufacturer"), table_name="vehicles")
    op.drop_index(op.f("ix_vehicles_plate_number"), table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
