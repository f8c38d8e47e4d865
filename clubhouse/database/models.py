"""
clubhouse.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- registry           — Single-row registry header (fee receiver, initializer)
- registry_admins    — Registry administrator set
- clubs              — One row per club; ``club_index`` is the dense sequence
- club_admins        — Per-club administrator set
- club_type_index    — Type tag → club ids, in creation order
- club_owner_index   — Creator → club ids, in creation order (optional)
- club_channels      — Append-only channels keyed by (club, position)
- club_messages      — Append-only messages keyed by (club, channel, position)
- fee_payments       — Creation fee forwarded to the fee receiver
- club_events        — Append-only journal of emitted creation payloads
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
    TypeDecorator,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

REGISTRY_ROW_ID = 1


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Clubhouse ORM models."""


# ---------------------------------------------------------------------------
# Column types
# ---------------------------------------------------------------------------
class U64(TypeDecorator):
    """Unsigned 64-bit integer.

    PostgreSQL ``BIGINT`` is signed, so values are stored as ``NUMERIC(20)``.
    SQLite would coerce large NUMERICs to REAL, so there they are stored as
    decimal text instead.
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(20, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


# ---------------------------------------------------------------------------
# Registry — single row + administrator set
# ---------------------------------------------------------------------------
class Registry(Base):
    """Deployment-wide state.  The variant knobs are fixed at initialization
    so every process sees the same rules."""
    __tablename__ = "registry"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=REGISTRY_ROW_ID)
    initialized_by: Mapped[str] = mapped_column(String(128), nullable=False)
    fee_receiver: Mapped[str] = mapped_column(String(128), nullable=False)
    fee_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fee_amount: Mapped[int] = mapped_column(U64, nullable=False)
    owner_index: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    guard_deleted_channels: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Registry by={self.initialized_by!r} fee_receiver={self.fee_receiver!r}>"


class RegistryAdmin(Base):
    __tablename__ = "registry_admins"

    address: Mapped[str] = mapped_column(String(128), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<RegistryAdmin {self.address!r}>"


# ---------------------------------------------------------------------------
# Clubs
# ---------------------------------------------------------------------------
class Club(Base):
    """A community club.

    ``club_index``, ``creator`` and ``type_tag`` are fixed at creation;
    every other column is mutable by the creator or a club admin.
    """
    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    club_index: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    creator: Mapped[str] = mapped_column(String(128), nullable=False)
    type_tag: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    logo: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    announcement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    threshold: Mapped[int] = mapped_column(U64, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    admins: Mapped[list[ClubAdmin]] = relationship(
        back_populates="club", cascade="all, delete-orphan", order_by="ClubAdmin.address"
    )
    channels: Mapped[list[ClubChannel]] = relationship(
        back_populates="club", cascade="all, delete-orphan", order_by="ClubChannel.position"
    )

    def __repr__(self) -> str:
        return f"<Club id={self.id} index={self.club_index} name={self.name!r}>"


class ClubAdmin(Base):
    __tablename__ = "club_admins"

    club_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clubs.id", ondelete="CASCADE"), primary_key=True
    )
    address: Mapped[str] = mapped_column(String(128), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    club: Mapped[Club] = relationship(back_populates="admins")

    def __repr__(self) -> str:
        return f"<ClubAdmin club={self.club_id} address={self.address!r}>"


# ---------------------------------------------------------------------------
# Registry indexes — insertion order is the serial ``id``
# ---------------------------------------------------------------------------
class ClubTypeEntry(Base):
    __tablename__ = "club_type_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type_tag: Mapped[str] = mapped_column(String(255), nullable=False)
    club_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    __table_args__ = (
        Index("ix_club_type_index_tag", "type_tag", "id"),
    )

    def __repr__(self) -> str:
        return f"<ClubTypeEntry tag={self.type_tag!r} club={self.club_id}>"


class ClubOwnerEntry(Base):
    __tablename__ = "club_owner_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False)
    club_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    __table_args__ = (
        Index("ix_club_owner_index_owner", "owner", "id"),
    )

    def __repr__(self) -> str:
        return f"<ClubOwnerEntry owner={self.owner!r} club={self.club_id}>"


# ---------------------------------------------------------------------------
# Channels & messages — positions are stable, never compacted
# ---------------------------------------------------------------------------
class ClubChannel(Base):
    __tablename__ = "club_channels"

    club_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clubs.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    club: Mapped[Club] = relationship(back_populates="channels")

    def __repr__(self) -> str:
        return (
            f"<ClubChannel club={self.club_id} pos={self.position} "
            f"name={self.name!r} deleted={self.deleted}>"
        )


class ClubMessage(Base):
    __tablename__ = "club_messages"

    club_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    channel_position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    sender: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, default=b"")
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["club_id", "channel_position"],
            ["club_channels.club_id", "club_channels.position"],
            ondelete="CASCADE",
        ),
        Index("ix_club_messages_sender", "sender"),
    )

    def __repr__(self) -> str:
        return (
            f"<ClubMessage club={self.club_id} ch={self.channel_position} "
            f"pos={self.position} deleted={self.deleted}>"
        )


# ---------------------------------------------------------------------------
# Fee payments & creation events
# ---------------------------------------------------------------------------
class FeePayment(Base):
    """Records that a creation fee was forwarded, in full, to the receiver."""
    __tablename__ = "fee_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    club_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False
    )
    payer: Mapped[str] = mapped_column(String(128), nullable=False)
    receiver: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[int] = mapped_column(U64, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<FeePayment club={self.club_id} amount={self.amount} to={self.receiver!r}>"


class ClubEvent(Base):
    __tablename__ = "club_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    club_id: Mapped[str] = mapped_column(String(64), nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_club_events_club", "club_id", "id"),
    )

    def __repr__(self) -> str:
        return f"<ClubEvent id={self.id} type={self.event_type!r} club={self.club_id}>"
