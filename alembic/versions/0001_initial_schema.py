"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("scanned_codes", sa.JSON(), nullable=False),
        sa.Column("drawing_entries", sa.Integer(), nullable=False),
        sa.Column("bonus_entries", sa.Integer(), nullable=False),
        sa.Column("redemption_status", sa.JSON(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("external_id", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column("completion_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_scan_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_table(
        "locations",
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("location_number", sa.String(length=20), nullable=True),
        sa.Column("location_name", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("code", name=op.f("pk_locations")),
    )
    op.create_table(
        "winner_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("drawing_id", sa.String(length=64), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("draw_date", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("entry_type", sa.String(length=16), nullable=False),
        sa.Column("entry_number", sa.Integer(), nullable=False),
        sa.Column("total_entries_at_draw", sa.Integer(), nullable=False),
        sa.Column("winner_name", sa.String(length=255), nullable=False),
        sa.Column("winner_email", sa.String(length=255), nullable=True),
        sa.Column("winner_phone", sa.String(length=50), nullable=True),
        sa.Column("winner_external_id", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_winner_records")),
    )
    with op.batch_alter_table("winner_records", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_winner_records_drawing_id"), ["drawing_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_winner_records_user_id"), ["user_id"], unique=False
        )
        batch_op.create_index(
            "ix_winner_records_drawn_at_id", ["drawn_at", "id"], unique=False
        )

    op.create_table(
        "drawing_markers",
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("last_drawn_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("name", name=op.f("pk_drawing_markers")),
    )
    op.create_table(
        "statistics_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_statistics_snapshots")),
        sa.UniqueConstraint(
            "kind", "key", name="uq_statistics_snapshots_kind_key"
        ),
    )


def downgrade() -> None:
    op.drop_table("statistics_snapshots")
    op.drop_table("drawing_markers")
    with op.batch_alter_table("winner_records", schema=None) as batch_op:
        batch_op.drop_index("ix_winner_records_drawn_at_id")
        batch_op.drop_index(batch_op.f("ix_winner_records_user_id"))
        batch_op.drop_index(batch_op.f("ix_winner_records_drawing_id"))

    op.drop_table("winner_records")
    op.drop_table("locations")
    op.drop_table("users")
