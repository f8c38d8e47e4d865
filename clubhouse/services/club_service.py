"""
clubhouse.services.club_service — Club Lifecycle, Admins & Channels
====================================================================

Every mutation follows the same pattern:
  1. Take the entity lock (``club:<id>``, or ``registry`` for creation)
  2. Begin transaction, load the row ``FOR UPDATE``
  3. Check the authorization predicate
  4. Apply the change
  5. Commit — or roll back everything on the first failed check

Authorization:
  * admin-set changes — creator only
  * metadata and channel changes — creator or club admin
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhouse.constants import TEXT_FIELDS, UPDATABLE_CLUB_FIELDS, ensure_u64
from clubhouse.database.engine import get_session
from clubhouse.database.models import (
    Club,
    ClubAdmin,
    ClubChannel,
    ClubEvent,
    ClubMessage,
    FeePayment,
    Registry,
)
from clubhouse.engine.events import CLUB_CREATED, build_club_created
from clubhouse.engine.ids import IdAllocator, new_club_id
from clubhouse.engine.locks import REGISTRY_KEY, EntityLocks, club_key, resolve_locks
from clubhouse.engine.policy import require_creator, require_manager
from clubhouse.errors import (
    AdminNotFound,
    AlreadyAdmin,
    ChannelDeleted,
    ChannelNotFound,
    InvalidFee,
    InvalidName,
    InvalidValue,
    NotFound,
)
from clubhouse.services.event_sink import EventSink, deliver
from clubhouse.services.registry_service import load_registry, register_club
from clubhouse.services.snapshots import ClubSnapshot, CreatedClub, club_snapshot

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def load_club(session: Session, club_id: str, *, for_update: bool = False) -> Club:
    club = session.get(Club, club_id, with_for_update=for_update)
    if club is None:
        raise NotFound(f"club {club_id} not found")
    return club


def load_channel(session: Session, club: Club, index: int) -> ClubChannel:
    """Channel at *index* or :class:`ChannelNotFound` (bounds check)."""
    if index < 0 or index >= len(club.channels):
        raise ChannelNotFound(f"channel {index} not found in club {club.id}")
    return club.channels[index]


def ensure_channel_live(registry: Registry, channel: ClubChannel) -> None:
    """Reject mutation of a soft-deleted channel when the registry guards them.

    With the guard off (the default) deleted channels stay fully mutable.
    """
    if registry.guard_deleted_channels and channel.deleted:
        raise ChannelDeleted(f"channel {channel.position} is deleted")


def _mutate_club(
    engine: Engine,
    club_id: str,
    apply: Callable[[Session, Club], T],
    *,
    locks: EntityLocks | None,
) -> T:
    """Run *apply* against a locked, freshly loaded club in one transaction."""
    with resolve_locks(locks).hold(club_key(club_id)):
        with get_session(engine) as session:
            club = load_club(session, club_id, for_update=True)
            return apply(session, club)


def _validate_text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidValue(f"{field} must be a string")
    return value


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------
def create_club(
    engine: Engine,
    *,
    creator: str,
    type_tag: str,
    name: str,
    logo: str,
    description: str,
    announcement: str,
    threshold: int,
    default_channel_name: str,
    fee: int | None = None,
    id_allocator: IdAllocator = new_club_id,
    sink: EventSink | None = None,
    locks: EntityLocks | None = None,
) -> CreatedClub:
    """Create a club with one default channel and register it.

    In the fee variant *fee* must equal the registry's fee amount exactly;
    it is recorded as forwarded in full to the fee receiver.  Deployments
    without a fee reject any payment.

    Raises
    ------
    InvalidName
        *name* or *default_channel_name* is empty.
    InvalidFee
        Payment missing, short, over, or not expected.
    """
    if not name:
        raise InvalidName("club name must not be empty")
    if not default_channel_name:
        raise InvalidName("default channel name must not be empty")
    for field, value in (("logo", logo), ("description", description),
                         ("announcement", announcement), ("type_tag", type_tag)):
        _validate_text(field, value)
    ensure_u64(threshold, "threshold")
    if fee is not None:
        ensure_u64(fee, "fee")

    with resolve_locks(locks).hold(REGISTRY_KEY):
        with get_session(engine) as session:
            registry = load_registry(session, for_update=True)
            if registry.fee_required:
                if fee != registry.fee_amount:
                    raise InvalidFee(
                        f"creation fee must be exactly {registry.fee_amount}, got {fee}"
                    )
            elif fee is not None:
                raise InvalidFee("this registry does not charge a creation fee")

            club = Club(
                id=id_allocator(),
                creator=creator,
                type_tag=type_tag,
                name=name,
                logo=logo,
                description=description,
                announcement=announcement,
                threshold=threshold,
            )
            club.channels.append(ClubChannel(position=0, name=default_channel_name, deleted=False))
            index = register_club(session, club, owner_index=registry.owner_index)

            if registry.fee_required:
                session.add(FeePayment(
                    club_id=club.id,
                    payer=creator,
                    receiver=registry.fee_receiver,
                    amount=fee,
                ))

            event = build_club_created(
                index=index,
                club_id=club.id,
                creator=creator,
                name=name,
                logo=logo,
                description=description,
                announcement=announcement,
                type_tag=type_tag,
                threshold=threshold,
                default_channel_name=default_channel_name,
            )
            session.add(ClubEvent(
                club_id=club.id, event_type=CLUB_CREATED, payload=event.to_payload()
            ))
            created = CreatedClub(club_id=club.id, index=index, event=event)

    logger.info(
        "Club created: index=%d id=%s type=%s creator=%s",
        created.index, created.club_id, type_tag, creator,
    )
    deliver(sink, created.event)
    return created


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_club(engine: Engine, club_id: str) -> ClubSnapshot:
    """Read-only snapshot: metadata, admins, channels with message counts."""
    with get_session(engine) as session:
        club = load_club(session, club_id)
        counts = dict(session.execute(
            select(ClubMessage.channel_position, func.count())
            .where(ClubMessage.club_id == club_id)
            .group_by(ClubMessage.channel_position)
        ).all())
        return club_snapshot(club, counts)


# ---------------------------------------------------------------------------
# Admin set (creator only)
# ---------------------------------------------------------------------------
def add_admin(
    engine: Engine, club_id: str, *, admin: str, caller: str,
    locks: EntityLocks | None = None,
) -> None:
    def _apply(session: Session, club: Club) -> None:
        require_creator(club, caller, "add_admin")
        if any(a.address == admin for a in club.admins):
            raise AlreadyAdmin(f"{admin} is already an admin of club {club_id}")
        club.admins.append(ClubAdmin(address=admin))

    _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: admin %s added by %s", club_id, admin, caller)


def remove_admin(
    engine: Engine, club_id: str, *, admin: str, caller: str,
    locks: EntityLocks | None = None,
) -> None:
    def _apply(session: Session, club: Club) -> None:
        require_creator(club, caller, "remove_admin")
        row = next((a for a in club.admins if a.address == admin), None)
        if row is None:
            raise AdminNotFound(f"{admin} is not an admin of club {club_id}")
        club.admins.remove(row)

    _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: admin %s removed by %s", club_id, admin, caller)


# ---------------------------------------------------------------------------
# Metadata (creator or admin)
# ---------------------------------------------------------------------------
def update_club(
    engine: Engine, club_id: str, *, caller: str,
    locks: EntityLocks | None = None, **fields: Any,
) -> None:
    """Replace any subset of name/logo/description/announcement/threshold.

    No emptiness validation: only creation insists on a non-empty name.
    """
    unknown = set(fields) - UPDATABLE_CLUB_FIELDS
    if unknown:
        raise InvalidValue(f"fields not updatable: {sorted(unknown)}")
    for key, value in fields.items():
        if key in TEXT_FIELDS:
            _validate_text(key, value)
        else:
            ensure_u64(value, key)

    def _apply(session: Session, club: Club) -> None:
        require_manager(club, caller, "update")
        for key, value in fields.items():
            setattr(club, key, value)

    _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: %s updated by %s", club_id, ", ".join(sorted(fields)), caller)


def update_name(engine: Engine, club_id: str, value: str, *, caller: str, **kw) -> None:
    update_club(engine, club_id, caller=caller, name=value, **kw)


def update_logo(engine: Engine, club_id: str, value: str, *, caller: str, **kw) -> None:
    update_club(engine, club_id, caller=caller, logo=value, **kw)


def update_description(engine: Engine, club_id: str, value: str, *, caller: str, **kw) -> None:
    update_club(engine, club_id, caller=caller, description=value, **kw)


def update_announcement(engine: Engine, club_id: str, value: str, *, caller: str, **kw) -> None:
    update_club(engine, club_id, caller=caller, announcement=value, **kw)


def update_threshold(engine: Engine, club_id: str, value: int, *, caller: str, **kw) -> None:
    update_club(engine, club_id, caller=caller, threshold=value, **kw)


# ---------------------------------------------------------------------------
# Channels (creator or admin)
# ---------------------------------------------------------------------------
def add_channel(
    engine: Engine, club_id: str, *, name: str, caller: str,
    locks: EntityLocks | None = None,
) -> int:
    """Append a channel and return its position.  Empty names are accepted."""
    _validate_text("name", name)

    def _apply(session: Session, club: Club) -> int:
        require_manager(club, caller, "add_channel")
        position = len(club.channels)
        club.channels.append(ClubChannel(position=position, name=name, deleted=False))
        session.flush()
        return position

    position = _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: channel %d added by %s", club_id, position, caller)
    return position


def delete_channel(
    engine: Engine, club_id: str, index: int, *, caller: str,
    locks: EntityLocks | None = None,
) -> None:
    """Soft-delete: the slot, its name and its messages all stay addressable."""
    def _apply(session: Session, club: Club) -> None:
        require_manager(club, caller, "delete_channel")
        channel = load_channel(session, club, index)
        ensure_channel_live(load_registry(session), channel)
        channel.deleted = True

    _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: channel %d deleted by %s", club_id, index, caller)


def rename_channel(
    engine: Engine, club_id: str, index: int, *, name: str, caller: str,
    locks: EntityLocks | None = None,
) -> None:
    _validate_text("name", name)

    def _apply(session: Session, club: Club) -> None:
        require_manager(club, caller, "rename_channel")
        channel = load_channel(session, club, index)
        ensure_channel_live(load_registry(session), channel)
        channel.name = name

    _mutate_club(engine, club_id, _apply, locks=locks)
    logger.info("Club %s: channel %d renamed by %s", club_id, index, caller)
