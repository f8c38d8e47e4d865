"""
clubhouse.services.event_sink — Creation Event Delivery
========================================================

The event emitter is an external collaborator.  The core persists each
creation payload to ``club_events`` inside the creating transaction, then
hands it to a sink once the transaction has committed.

A sink that raises is logged and ignored: the club already exists and
the payload is already durable in the journal.
"""

from __future__ import annotations

import logging
from typing import Protocol

from clubhouse.engine.events import ClubCreated

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def emit(self, event: ClubCreated) -> None: ...


class LoggingEventSink:
    """Default sink — writes one INFO line per event."""

    def emit(self, event: ClubCreated) -> None:
        logger.info(
            "ClubCreated index=%d id=%s creator=%s type=%s",
            event.index, event.id, event.creator, event.type_tag,
        )


default_sink = LoggingEventSink()


def deliver(sink: EventSink | None, event: ClubCreated) -> None:
    """Hand *event* to *sink* (or the default), swallowing sink failures."""
    target = sink if sink is not None else default_sink
    try:
        target.emit(event)
    except Exception:
        logger.exception("Event sink failed for club %s", event.id)
