"""
clubhouse.services.snapshots — Detached Read Models
====================================================

Services never hand live ORM rows to callers.  Everything crossing the
service boundary is one of these frozen dataclasses, built while the
session is still open.
"""

from __future__ import annotations

from dataclasses import dataclass

from clubhouse.database.models import Club, ClubChannel, ClubMessage, Registry
from clubhouse.engine.events import ClubCreated


@dataclass(frozen=True, slots=True)
class RegistryInfo:
    initialized_by: str
    administrators: tuple[str, ...]
    fee_required: bool
    fee_amount: int
    fee_receiver: str
    owner_index: bool
    guard_deleted_channels: bool
    club_count: int


@dataclass(frozen=True, slots=True)
class ChannelSnapshot:
    index: int
    name: str
    deleted: bool
    message_count: int


@dataclass(frozen=True, slots=True)
class ClubSnapshot:
    index: int
    id: str
    creator: str
    admins: tuple[str, ...]
    name: str
    logo: str
    description: str
    announcement: str
    type_tag: str
    threshold: int
    channels: tuple[ChannelSnapshot, ...]


@dataclass(frozen=True, slots=True)
class MessageSnapshot:
    index: int
    sender: str
    timestamp: int
    content: bytes
    deleted: bool

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class CreatedClub:
    club_id: str
    index: int
    event: ClubCreated


# ---------------------------------------------------------------------------
# Builders (call with the session still open)
# ---------------------------------------------------------------------------
def registry_info(registry: Registry, administrators: list[str], club_count: int) -> RegistryInfo:
    return RegistryInfo(
        initialized_by=registry.initialized_by,
        administrators=tuple(sorted(administrators)),
        fee_required=registry.fee_required,
        fee_amount=registry.fee_amount,
        fee_receiver=registry.fee_receiver,
        owner_index=registry.owner_index,
        guard_deleted_channels=registry.guard_deleted_channels,
        club_count=club_count,
    )


def channel_snapshot(channel: ClubChannel, message_count: int) -> ChannelSnapshot:
    return ChannelSnapshot(
        index=channel.position,
        name=channel.name,
        deleted=channel.deleted,
        message_count=message_count,
    )


def club_snapshot(club: Club, message_counts: dict[int, int]) -> ClubSnapshot:
    return ClubSnapshot(
        index=club.club_index,
        id=club.id,
        creator=club.creator,
        admins=tuple(a.address for a in club.admins),
        name=club.name,
        logo=club.logo,
        description=club.description,
        announcement=club.announcement,
        type_tag=club.type_tag,
        threshold=club.threshold,
        channels=tuple(
            channel_snapshot(ch, message_counts.get(ch.position, 0))
            for ch in club.channels
        ),
    )


def message_snapshot(msg: ClubMessage) -> MessageSnapshot:
    return MessageSnapshot(
        index=msg.position,
        sender=msg.sender,
        timestamp=msg.timestamp_ms,
        content=bytes(msg.content),
        deleted=msg.deleted,
    )
