"""
tests/test_engine.py — Pure Engine Tests
=========================================
Authorization predicates, the creation payload, the lock table, the
clock, u64 validation and the async bridge.  No database involved.
"""

from __future__ import annotations

import asyncio
import threading

import pytest

from clubhouse.constants import U64_MAX, ensure_u64
from clubhouse.database.engine import run_db
from clubhouse.database.models import Club, ClubAdmin
from clubhouse.engine.clock import FixedClock, SystemClock
from clubhouse.engine.events import build_club_created
from clubhouse.engine.ids import new_club_id
from clubhouse.engine.locks import REGISTRY_KEY, EntityLocks, club_key, resolve_locks
from clubhouse.engine.policy import (
    can_manage,
    is_creator,
    is_registry_admin,
    require_creator,
    require_manager,
)
from clubhouse.errors import InvalidValue, NotAuthorized
from clubhouse.services.event_sink import deliver
from conftest import ADMIN, CREATOR, STRANGER, RecordingSink


def _club(admins=()):
    club = Club(id="0xclub", creator=CREATOR)
    club.admins = [ClubAdmin(address=a) for a in admins]
    return club


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
class TestPolicy:
    def test_creator(self):
        club = _club()
        assert is_creator(club, CREATOR)
        assert not is_creator(club, ADMIN)

    def test_can_manage(self):
        club = _club(admins=[ADMIN])
        assert can_manage(club, CREATOR)
        assert can_manage(club, ADMIN)
        assert not can_manage(club, STRANGER)

    def test_creator_manages_without_admin_row(self):
        assert can_manage(_club(admins=[]), CREATOR)

    def test_admin_is_not_creator(self):
        club = _club(admins=[ADMIN])
        with pytest.raises(NotAuthorized):
            require_creator(club, ADMIN, "add_admin")
        require_manager(club, ADMIN, "update")

    def test_require_manager_rejects_stranger(self):
        with pytest.raises(NotAuthorized) as exc:
            require_manager(_club(), STRANGER, "update")
        assert exc.value.kind == "NotAuthorized"

    def test_registry_admin(self):
        assert is_registry_admin(["0x1", "0x2"], "0x2")
        assert not is_registry_admin([], "0x2")


# ---------------------------------------------------------------------------
# Creation payload
# ---------------------------------------------------------------------------
class TestClubCreatedEvent:
    def test_snapshot_has_no_admins_and_one_channel(self):
        event = build_club_created(
            index=4, club_id="0xabc", creator=CREATOR, name="n", logo="l",
            description="d", announcement="a", type_tag="T", threshold=1,
            default_channel_name="default",
        )
        assert event.admins == ()
        assert event.channels == ("default",)
        assert event.to_payload()["channels"] == ["default"]
        assert event.to_payload()["admins"] == []
        assert event.to_payload()["index"] == 4

    def test_deliver_swallows_sink_errors(self, caplog):
        class Boom:
            def emit(self, event):
                raise RuntimeError("boom")

        event = build_club_created(
            index=0, club_id="0xabc", creator=CREATOR, name="n", logo="", description="",
            announcement="", type_tag="T", threshold=0, default_channel_name="d",
        )
        deliver(Boom(), event)
        assert "Event sink failed" in caplog.text

    def test_deliver_to_sink(self):
        sink = RecordingSink()
        event = build_club_created(
            index=0, club_id="0xabc", creator=CREATOR, name="n", logo="", description="",
            announcement="", type_tag="T", threshold=0, default_channel_name="d",
        )
        deliver(sink, event)
        assert sink.events == [event]


# ---------------------------------------------------------------------------
# Identifiers, clock, bounds
# ---------------------------------------------------------------------------
class TestPrimitives:
    def test_ids_unique_and_prefixed(self):
        ids = {new_club_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(i.startswith("0x") and len(i) == 34 for i in ids)

    def test_fixed_clock_steps(self):
        clock = FixedClock(start_ms=100, step_ms=10)
        assert [clock.now_ms() for _ in range(3)] == [100, 110, 120]
        clock.advance(1000)
        assert clock.now_ms() == 1130

    def test_system_clock_is_milliseconds(self):
        assert SystemClock().now_ms() > 1_600_000_000_000

    @pytest.mark.parametrize("value", [0, 1, U64_MAX])
    def test_u64_accepts(self, value):
        assert ensure_u64(value, "threshold") == value

    @pytest.mark.parametrize("value", [-1, U64_MAX + 1, True, "1", 1.0, None])
    def test_u64_rejects(self, value):
        with pytest.raises(InvalidValue):
            ensure_u64(value, "threshold")


# ---------------------------------------------------------------------------
# Lock table
# ---------------------------------------------------------------------------
class TestEntityLocks:
    def test_keys(self):
        assert club_key("0xabc") == "club:0xabc"
        assert REGISTRY_KEY == "registry"

    def test_hold_is_exclusive_per_key(self):
        locks = EntityLocks()
        counter = {"value": 0, "max": 0}
        active = threading.Lock()

        def _work():
            with locks.hold(club_key("0x1")):
                with active:
                    counter["value"] += 1
                    counter["max"] = max(counter["max"], counter["value"])
                with active:
                    counter["value"] -= 1

        threads = [threading.Thread(target=_work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["max"] == 1

    def test_hold_deduplicates_keys(self):
        locks = EntityLocks()
        with locks.hold(club_key("b"), club_key("a"), club_key("a")):
            pass
        assert len(locks) == 2


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
class TestRunDb:
    def test_runs_sync_function_off_the_loop(self):
        caller_thread = threading.get_ident()

        def _work(a, *, b):
            return a + b, threading.get_ident()

        result, worker_thread = asyncio.run(run_db(_work, 2, b=3))
        assert result == 5
        assert worker_thread != caller_thread


class TestResolveLocks:
    def test_empty_injected_table_is_used(self):
        locks = EntityLocks()
        assert len(locks) == 0
        assert resolve_locks(locks) is locks

    def test_default_table(self):
        assert resolve_locks(None) is resolve_locks()
