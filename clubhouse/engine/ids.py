"""
clubhouse.engine.ids — Club Identifier Allocation
==================================================

Identifiers are globally unique and never reused.  Anything callable
with no arguments that returns a fresh string can be injected in place
of :func:`new_club_id`.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

IdAllocator = Callable[[], str]


def new_club_id() -> str:
    """Return a fresh ``0x``-prefixed 128-bit hex identifier."""
    return "0x" + uuid.uuid4().hex
