"""
clubhouse.constants — Shared Constants & Helpers
=================================================

Single source of truth for the creation fee, u64 bounds and the set of
club fields that managers may update.
"""

from __future__ import annotations

from clubhouse.errors import InvalidValue

# ---------------------------------------------------------------------------
# Creation fee (fee variant)
# ---------------------------------------------------------------------------
DEFAULT_CREATION_FEE: int = 1_000_000_000  # minor units, paid in full

# ---------------------------------------------------------------------------
# Numeric bounds
# ---------------------------------------------------------------------------
U64_MAX: int = 2**64 - 1


def ensure_u64(value: int, field: str) -> int:
    """Return *value* if it fits an unsigned 64-bit integer.

    Raises :class:`~clubhouse.errors.InvalidValue` otherwise.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"{field} must be an integer, got {type(value).__name__}")
    if value < 0 or value > U64_MAX:
        raise InvalidValue(f"{field} out of u64 range: {value}")
    return value


# ---------------------------------------------------------------------------
# Club metadata allow list
# ---------------------------------------------------------------------------
TEXT_FIELDS: frozenset[str] = frozenset({"name", "logo", "description", "announcement"})
UPDATABLE_CLUB_FIELDS: frozenset[str] = TEXT_FIELDS | {"threshold"}

# ---------------------------------------------------------------------------
# Message reads
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
