"""
clubhouse.services.message_service — Channel Message Logs
==========================================================

Messages are append-only and addressed by position within their channel.
Two writes exist:

* :func:`post_message` — anyone may post; no authorization beyond
  identifying the sender.
* :func:`delete_message` — only the original sender, exactly once.
  Content is cleared and the slot stays in place (no compaction).

Per message: ``Active --delete(by sender)--> Deleted`` (terminal).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhouse.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from clubhouse.database.engine import get_session
from clubhouse.database.models import ClubMessage
from clubhouse.engine.clock import Clock, system_clock
from clubhouse.engine.locks import EntityLocks, club_key, resolve_locks
from clubhouse.errors import (
    AlreadyDeleted,
    InvalidValue,
    MessageNotFound,
    NotAuthorized,
)
from clubhouse.services.club_service import ensure_channel_live, load_channel, load_club
from clubhouse.services.registry_service import load_registry
from clubhouse.services.snapshots import MessageSnapshot, message_snapshot

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _message_count(session: Session, club_id: str, channel_index: int) -> int:
    return session.scalar(
        select(func.count()).select_from(ClubMessage).where(
            ClubMessage.club_id == club_id,
            ClubMessage.channel_position == channel_index,
        )
    ) or 0


def _load_message(
    session: Session, club_id: str, channel_index: int, message_index: int,
    *, for_update: bool = False,
) -> ClubMessage:
    # Bounds first: positions past the signed 64-bit range never reach SQL
    if message_index < 0 or message_index >= _message_count(session, club_id, channel_index):
        raise MessageNotFound(
            f"message {message_index} not found in channel {channel_index}"
        )
    return session.get(
        ClubMessage, (club_id, channel_index, message_index), with_for_update=for_update
    )


def _as_bytes(content: bytes | str) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    raise InvalidValue("message content must be bytes or str")


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def post_message(
    engine: Engine,
    club_id: str,
    channel_index: int,
    content: bytes | str,
    *,
    sender: str,
    clock: Clock | None = None,
    locks: EntityLocks | None = None,
) -> int:
    """Append a message and return its position in the channel.

    The timestamp comes from *clock*, never from the caller.  Posting to a
    soft-deleted channel is allowed unless the registry guards deleted
    channels.
    """
    payload = _as_bytes(content)
    clock = clock or system_clock

    with resolve_locks(locks).hold(club_key(club_id)):
        with get_session(engine) as session:
            club = load_club(session, club_id, for_update=True)
            channel = load_channel(session, club, channel_index)
            ensure_channel_live(load_registry(session), channel)

            position = _message_count(session, club_id, channel_index)
            session.add(ClubMessage(
                club_id=club_id,
                channel_position=channel_index,
                position=position,
                sender=sender,
                timestamp_ms=clock.now_ms(),
                content=payload,
                deleted=False,
            ))

    logger.debug("Club %s: message %d posted to channel %d by %s",
                 club_id, position, channel_index, sender)
    return position


def delete_message(
    engine: Engine,
    club_id: str,
    channel_index: int,
    message_index: int,
    *,
    caller: str,
    locks: EntityLocks | None = None,
) -> None:
    """Soft-delete a message.  Sender only; club admins have no override.

    Raises
    ------
    ChannelNotFound / MessageNotFound
        Index out of range.
    NotAuthorized
        *caller* is not the sender.
    AlreadyDeleted
        The message was deleted before; state is left untouched.
    """
    with resolve_locks(locks).hold(club_key(club_id)):
        with get_session(engine) as session:
            club = load_club(session, club_id, for_update=True)
            load_channel(session, club, channel_index)
            msg = _load_message(session, club_id, channel_index, message_index, for_update=True)
            if msg.sender != caller:
                logger.warning(
                    "Denied delete of message %d/%d in club %s for %s",
                    channel_index, message_index, club_id, caller,
                )
                raise NotAuthorized()
            if msg.deleted:
                raise AlreadyDeleted(f"message {message_index} is already deleted")
            msg.content = b""
            msg.deleted = True

    logger.info("Club %s: message %d/%d deleted by sender",
                club_id, channel_index, message_index)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_message(
    engine: Engine, club_id: str, channel_index: int, message_index: int
) -> MessageSnapshot:
    with get_session(engine) as session:
        club = load_club(session, club_id)
        load_channel(session, club, channel_index)
        return message_snapshot(_load_message(session, club_id, channel_index, message_index))


def get_messages(
    engine: Engine,
    club_id: str,
    channel_index: int,
    *,
    offset: int = 0,
    limit: int = DEFAULT_PAGE_SIZE,
) -> list[MessageSnapshot]:
    """Messages at positions ``offset .. offset+limit-1`` in posting order.

    The page stops early at the end of the log; deleted messages are
    included (with empty content) so positions line up.
    """
    if offset < 0:
        raise InvalidValue("offset must be >= 0")
    if limit < 0 or limit > MAX_PAGE_SIZE:
        raise InvalidValue(f"limit must be between 0 and {MAX_PAGE_SIZE}")

    with get_session(engine) as session:
        club = load_club(session, club_id)
        load_channel(session, club, channel_index)
        if offset >= _message_count(session, club_id, channel_index):
            return []
        rows = session.scalars(
            select(ClubMessage)
            .where(
                ClubMessage.club_id == club_id,
                ClubMessage.channel_position == channel_index,
                ClubMessage.position >= offset,
            )
            .order_by(ClubMessage.position)
            .limit(limit)
        ).all()
        return [message_snapshot(m) for m in rows]


def message_count(engine: Engine, club_id: str, channel_index: int) -> int:
    with get_session(engine) as session:
        club = load_club(session, club_id)
        load_channel(session, club, channel_index)
        return _message_count(session, club_id, channel_index)
