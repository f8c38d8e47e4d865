"""Create registry, club, channel, message, fee and event tables

Revision ID: 5e0c7a1d2b34
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e0c7a1d2b34"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the full Clubhouse schema."""

    # --- registry ---
    op.create_table(
        "registry",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("initialized_by", sa.String(128), nullable=False),
        sa.Column("fee_receiver", sa.String(128), nullable=False),
        sa.Column("fee_required", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("fee_amount", sa.Numeric(20, 0), nullable=False),
        sa.Column("owner_index", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "guard_deleted_channels", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_table(
        "registry_admins",
        sa.Column("address", sa.String(128), primary_key=True),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- clubs ---
    op.create_table(
        "clubs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("club_index", sa.BigInteger, nullable=False, unique=True),
        sa.Column("creator", sa.String(128), nullable=False),
        sa.Column("type_tag", sa.String(255), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("logo", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("announcement", sa.Text, nullable=False),
        sa.Column("threshold", sa.Numeric(20, 0), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "club_admins",
        sa.Column(
            "club_id", sa.String(64),
            sa.ForeignKey("clubs.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("address", sa.String(128), primary_key=True),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- registry indexes ---
    op.create_table(
        "club_type_index",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("type_tag", sa.String(255), nullable=False),
        sa.Column(
            "club_id", sa.String(64),
            sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
    )
    op.create_index("ix_club_type_index_tag", "club_type_index", ["type_tag", "id"])
    op.create_table(
        "club_owner_index",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner", sa.String(128), nullable=False),
        sa.Column(
            "club_id", sa.String(64),
            sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
    )
    op.create_index("ix_club_owner_index_owner", "club_owner_index", ["owner", "id"])

    # --- channels & messages ---
    op.create_table(
        "club_channels",
        sa.Column(
            "club_id", sa.String(64),
            sa.ForeignKey("clubs.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("position", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "club_messages",
        sa.Column("club_id", sa.String(64), primary_key=True),
        sa.Column("channel_position", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("position", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("sender", sa.String(128), nullable=False),
        sa.Column("timestamp_ms", sa.BigInteger, nullable=False),
        sa.Column("content", sa.LargeBinary, nullable=False),
        sa.Column("deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(
            ["club_id", "channel_position"],
            ["club_channels.club_id", "club_channels.position"],
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_club_messages_sender", "club_messages", ["sender"])

    # --- fees & events ---
    op.create_table(
        "fee_payments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "club_id", sa.String(64),
            sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("payer", sa.String(128), nullable=False),
        sa.Column("receiver", sa.String(128), nullable=False),
        sa.Column("amount", sa.Numeric(20, 0), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "club_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("club_id", sa.String(64), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("payload", postgresql.JSONB, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_club_events_club", "club_events", ["club_id", "id"])


def downgrade() -> None:
    """Drop the full Clubhouse schema."""
    op.drop_index("ix_club_events_club", table_name="club_events")
    op.drop_table("club_events")
    op.drop_table("fee_payments")
    op.drop_index("ix_club_messages_sender", table_name="club_messages")
    op.drop_table("club_messages")
    op.drop_table("club_channels")
    op.drop_index("ix_club_owner_index_owner", table_name="club_owner_index")
    op.drop_table("club_owner_index")
    op.drop_index("ix_club_type_index_tag", table_name="club_type_index")
    op.drop_table("club_type_index")
    op.drop_table("club_admins")
    op.drop_table("clubs")
    op.drop_table("registry_admins")
    op.drop_table("registry")
