"""
Clubhouse — Club Registry, Channels and Message Logs
=====================================================
A small data-and-authorization engine for community clubs.  Every club
has a creator, an admin set, descriptive metadata, a threshold and an
append-only list of channels; every channel holds an append-only,
soft-deletable message log.  A single registry indexes all clubs by
sequence number, by type tag and (optionally) by owner.

Package layout::

    clubhouse/
    ├── __main__.py        # `python -m clubhouse` → uvicorn on api_port
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Fee amount, u64 bounds, updatable fields
    ├── errors.py          # Validation / auth / not-found / conflict errors
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   └── models.py      # ORM models (registry, clubs, channels, messages)
    ├── engine/
    │   ├── clock.py       # Trusted millisecond clock
    │   ├── ids.py         # Club identifier allocation
    │   ├── events.py      # ClubCreated payload construction
    │   ├── locks.py       # Per-entity serialization
    │   └── policy.py      # Authorization predicates
    ├── services/
    │   ├── registry_service.py  # Registry bootstrap, indexing, lookups
    │   ├── club_service.py      # Club lifecycle, admins, channels
    │   ├── message_service.py   # Message log post / delete / read
    │   ├── event_sink.py        # Creation event delivery
    │   └── snapshots.py         # Detached read models
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config, caller identity (JWT)
        └── routes/        # Registry + club REST endpoints
"""

__version__ = "0.1.0"
