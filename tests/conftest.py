"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# A valid JWT_SECRET must exist before clubhouse.api.deps is imported, since
# it validates the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clubhouse.config import ClubhouseConfig  # noqa: E402
from clubhouse.database.models import Base  # noqa: E402
from clubhouse.engine.clock import FixedClock  # noqa: E402
from clubhouse.engine.locks import EntityLocks  # noqa: E402
from clubhouse.services import club_service, registry_service  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------
DEPLOYER = "0xdep10yer"
CREATOR = "0xc0ffee"
ADMIN = "0xad0001"
STRANGER = "0x5742a6e4"

FEE = 1_000_000_000


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------
@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Clubhouse tables.

    StaticPool keeps one shared in-memory database for every session.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool.

    Used by the concurrency tests: each worker thread gets its own
    connection, and SQLite's busy timeout serializes the writers.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clubhouse.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=10,
        max_overflow=10,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def locks() -> EntityLocks:
    return EntityLocks()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(start_ms=1_700_000_000_000, step_ms=1000)


# ---------------------------------------------------------------------------
# Registry variants
# ---------------------------------------------------------------------------
def make_config(**overrides) -> ClubhouseConfig:
    values = {
        "community_name": "Test Clubhouse",
        "api_port": 8000,
        "fee_required": False,
        "fee_amount": FEE,
        "fee_receiver": None,
        "owner_index": False,
        "guard_deleted_channels": False,
    }
    values.update(overrides)
    return ClubhouseConfig(**values)


@pytest.fixture
def registry(db_engine):
    """Free-creation registry, no owner index, deleted channels stay mutable."""
    return registry_service.initialize_registry(db_engine, DEPLOYER, make_config())


@pytest.fixture
def fee_registry(db_engine):
    """Fee variant with the owner index enabled."""
    return registry_service.initialize_registry(
        db_engine, DEPLOYER,
        make_config(fee_required=True, owner_index=True, fee_receiver="0xfee5"),
    )


@pytest.fixture
def guarded_registry(db_engine):
    """Registry that rejects mutation of soft-deleted channels."""
    return registry_service.initialize_registry(
        db_engine, DEPLOYER, make_config(guard_deleted_channels=True)
    )


def create_club(engine, *, creator: str = CREATOR, type_tag: str = "0x2::sui::SUI",
                name: str = "1 unit club", threshold: int = 1,
                default_channel_name: str = "default", **kwargs):
    """Create a club with sensible defaults.  Returns the CreatedClub."""
    params = {
        "logo": "logo",
        "description": "description",
        "announcement": "announcement",
    }
    params.update(kwargs)
    return club_service.create_club(
        engine,
        creator=creator,
        type_tag=type_tag,
        name=name,
        threshold=threshold,
        default_channel_name=default_channel_name,
        **params,
    )


@pytest.fixture
def club_id(db_engine, registry) -> str:
    """A club created by CREATOR with ADMIN already promoted."""
    created = create_club(db_engine)
    club_service.add_admin(db_engine, created.club_id, admin=ADMIN, caller=CREATOR)
    return created.club_id


# ---------------------------------------------------------------------------
# Event sink & API
# ---------------------------------------------------------------------------
class RecordingSink:
    def __init__(self) -> None:
        self.events = []

    def emit(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def make_token(address: str) -> str:
    """Create a caller JWT.  Usable as both a fixture helper and a factory."""
    import jwt

    from clubhouse.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": address}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(address: str) -> dict:
    return {"Authorization": f"Bearer {make_token(address)}"}


@pytest.fixture
def client(db_engine, sink):
    """FastAPI TestClient bound to the in-memory engine and a recording sink."""
    from fastapi.testclient import TestClient

    from clubhouse.api.deps import get_engine, get_event_sink
    from clubhouse.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_event_sink] = lambda: sink
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
