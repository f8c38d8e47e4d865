"""
clubhouse.engine.policy — Authorization Predicates
===================================================

Pure functions; no I/O.  Two predicates gate every club mutation:

* :func:`can_manage` — creator **or** club admin.  Metadata and channel
  changes.
* :func:`is_creator` — creator only.  Admin-set changes (admins cannot
  promote or demote each other).

Message deletion has its own rule (sender only) and lives with the
message log.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from clubhouse.database.models import Club
from clubhouse.errors import NotAuthorized

logger = logging.getLogger(__name__)


def admin_addresses(club: Club) -> set[str]:
    return {a.address for a in club.admins}


def is_creator(club: Club, caller: str) -> bool:
    return caller == club.creator


def can_manage(club: Club, caller: str) -> bool:
    """``caller == creator or caller in admins``.

    The creator's authority never depends on membership in the admin set.
    """
    return is_creator(club, caller) or caller in admin_addresses(club)


def is_registry_admin(administrators: Iterable[str], caller: str) -> bool:
    return caller in set(administrators)


def require_creator(club: Club, caller: str, action: str) -> None:
    if not is_creator(club, caller):
        logger.warning("Denied %s on club %s for %s (creator only)", action, club.id, caller)
        raise NotAuthorized()


def require_manager(club: Club, caller: str, action: str) -> None:
    if not can_manage(club, caller):
        logger.warning("Denied %s on club %s for %s", action, club.id, caller)
        raise NotAuthorized()
