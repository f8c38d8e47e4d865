"""
clubhouse.services.registry_service — Registry Bootstrap, Indexing & Lookups
=============================================================================

The registry is created exactly once per deployment by
:func:`initialize_registry`.  After that it is pure bookkeeping:

* ``clubs.club_index`` — dense 0-based sequence; the next index is always
  the current number of registered clubs.
* ``club_type_index`` — type tag → club ids in creation order.
* ``club_owner_index`` — creator → club ids, only when the deployment
  enables the owner index.

:func:`register_club` runs inside the club-creation transaction while the
registry lock is held, so two creations can never claim the same index.
Lookups are plain reads and never take the lock.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubhouse.config import ClubhouseConfig
from clubhouse.constants import DEFAULT_CREATION_FEE, ensure_u64
from clubhouse.database.engine import get_session
from clubhouse.database.models import (
    REGISTRY_ROW_ID,
    Club,
    ClubOwnerEntry,
    ClubTypeEntry,
    Registry,
    RegistryAdmin,
)
from clubhouse.engine.locks import REGISTRY_KEY, EntityLocks, resolve_locks
from clubhouse.engine.policy import is_registry_admin
from clubhouse.errors import (
    AdminNotFound,
    AlreadyAdmin,
    LastAdministrator,
    NotAuthorized,
    NotFound,
    RegistryAlreadyInitialized,
    RegistryNotInitialized,
)
from clubhouse.services.snapshots import RegistryInfo, registry_info

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Session-level helpers (used by the club and message services)
# ---------------------------------------------------------------------------
def load_registry(session: Session, *, for_update: bool = False) -> Registry:
    """Fetch the registry row or raise :class:`RegistryNotInitialized`."""
    registry = session.get(Registry, REGISTRY_ROW_ID, with_for_update=for_update)
    if registry is None:
        raise RegistryNotInitialized("registry has not been initialized")
    return registry


def _administrators(session: Session) -> list[str]:
    return list(session.scalars(select(RegistryAdmin.address)).all())


def _club_count(session: Session) -> int:
    return session.scalar(select(func.count()).select_from(Club)) or 0


def register_club(session: Session, club: Club, *, owner_index: bool) -> int:
    """Assign the next sequence number to *club* and index it.

    Not exposed standalone; the caller must hold the registry lock.
    Returns the assigned index.
    """
    index = _club_count(session)
    club.club_index = index
    session.add(club)
    session.flush()

    session.add(ClubTypeEntry(type_tag=club.type_tag, club_id=club.id))
    if owner_index:
        session.add(ClubOwnerEntry(owner=club.creator, club_id=club.id))
    session.flush()
    return index


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------
def initialize_registry(
    engine: Engine,
    caller: str,
    cfg: ClubhouseConfig | None = None,
    *,
    locks: EntityLocks | None = None,
) -> RegistryInfo:
    """Create the registry with ``administrators = {caller}``.

    No authorization check: there is no prior authority.  The variant
    settings (fee, owner index, deleted-channel guard) are copied from
    *cfg* and fixed from here on.

    Raises
    ------
    RegistryAlreadyInitialized
        On any call after the first.
    """
    fee_required = cfg.fee_required if cfg else False
    fee_amount = ensure_u64(cfg.fee_amount if cfg else DEFAULT_CREATION_FEE, "fee_amount")
    fee_receiver = (cfg.fee_receiver if cfg else None) or caller

    with resolve_locks(locks).hold(REGISTRY_KEY):
        with get_session(engine) as session:
            if session.get(Registry, REGISTRY_ROW_ID) is not None:
                raise RegistryAlreadyInitialized("registry already initialized")
            registry = Registry(
                id=REGISTRY_ROW_ID,
                initialized_by=caller,
                fee_receiver=fee_receiver,
                fee_required=fee_required,
                fee_amount=fee_amount,
                owner_index=cfg.owner_index if cfg else False,
                guard_deleted_channels=cfg.guard_deleted_channels if cfg else False,
            )
            session.add(registry)
            session.add(RegistryAdmin(address=caller))
            session.flush()
            info = registry_info(registry, [caller], 0)

    logger.info(
        "Registry initialized by %s (fee_required=%s, owner_index=%s)",
        caller, info.fee_required, info.owner_index,
    )
    return info


def is_initialized(engine: Engine) -> bool:
    with get_session(engine) as session:
        return session.get(Registry, REGISTRY_ROW_ID) is not None


def get_registry(engine: Engine) -> RegistryInfo:
    with get_session(engine) as session:
        registry = load_registry(session)
        return registry_info(registry, _administrators(session), _club_count(session))


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def lookup_by_index(engine: Engine, index: int) -> str:
    """Return the club id registered at *index*.

    Raises :class:`NotFound` when *index* is outside ``0..count-1``.
    """
    with get_session(engine) as session:
        # Bounds first: u64 indices past the signed 64-bit range never reach SQL
        if index < 0 or index >= _club_count(session):
            raise NotFound(f"no club at index {index}")
        return session.scalar(select(Club.id).where(Club.club_index == index))


def lookup_by_type(engine: Engine, type_tag: str) -> list[str]:
    """Club ids created under *type_tag*, in creation order.  Never fails."""
    with get_session(engine) as session:
        return list(session.scalars(
            select(ClubTypeEntry.club_id)
            .where(ClubTypeEntry.type_tag == type_tag)
            .order_by(ClubTypeEntry.id)
        ).all())


def lookup_by_owner(engine: Engine, owner: str) -> list[str]:
    """Club ids created by *owner*, in creation order.

    Raises :class:`NotFound` only when the deployment runs without the
    owner index; an owner with no clubs yields ``[]``.
    """
    with get_session(engine) as session:
        if not load_registry(session).owner_index:
            raise NotFound("owner index is not enabled for this registry")
        return list(session.scalars(
            select(ClubOwnerEntry.club_id)
            .where(ClubOwnerEntry.owner == owner)
            .order_by(ClubOwnerEntry.id)
        ).all())


def clubs_by_type(engine: Engine) -> dict[str, list[str]]:
    """Every type bucket at once: ``{tag: [club ids in creation order]}``."""
    with get_session(engine) as session:
        rows = session.execute(
            select(ClubTypeEntry.type_tag, ClubTypeEntry.club_id).order_by(ClubTypeEntry.id)
        ).all()
    buckets: dict[str, list[str]] = {}
    for tag, club_id in rows:
        buckets.setdefault(tag, []).append(club_id)
    return buckets


def club_count(engine: Engine) -> int:
    with get_session(engine) as session:
        return _club_count(session)


# ---------------------------------------------------------------------------
# Registry administration
# ---------------------------------------------------------------------------
def _require_registry_admin(session: Session, caller: str, action: str) -> None:
    if not is_registry_admin(_administrators(session), caller):
        logger.warning("Denied registry %s for %s", action, caller)
        raise NotAuthorized()


def add_registry_admin(
    engine: Engine, *, address: str, caller: str, locks: EntityLocks | None = None
) -> None:
    with resolve_locks(locks).hold(REGISTRY_KEY):
        with get_session(engine) as session:
            load_registry(session, for_update=True)
            _require_registry_admin(session, caller, "add_admin")
            if session.get(RegistryAdmin, address) is not None:
                raise AlreadyAdmin(f"{address} is already a registry administrator")
            session.add(RegistryAdmin(address=address))
    logger.info("Registry admin %s added by %s", address, caller)


def remove_registry_admin(
    engine: Engine, *, address: str, caller: str, locks: EntityLocks | None = None
) -> None:
    """Remove a registry administrator.  The set may never become empty."""
    with resolve_locks(locks).hold(REGISTRY_KEY):
        with get_session(engine) as session:
            load_registry(session, for_update=True)
            _require_registry_admin(session, caller, "remove_admin")
            row = session.get(RegistryAdmin, address)
            if row is None:
                raise AdminNotFound(f"{address} is not a registry administrator")
            if len(_administrators(session)) == 1:
                raise LastAdministrator("cannot remove the last registry administrator")
            session.delete(row)
    logger.info("Registry admin %s removed by %s", address, caller)


def set_fee_receiver(
    engine: Engine, *, receiver: str, caller: str, locks: EntityLocks | None = None
) -> None:
    with resolve_locks(locks).hold(REGISTRY_KEY):
        with get_session(engine) as session:
            registry = load_registry(session, for_update=True)
            _require_registry_admin(session, caller, "set_fee_receiver")
            registry.fee_receiver = receiver
    logger.info("Fee receiver set to %s by %s", receiver, caller)
