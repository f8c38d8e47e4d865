"""
clubhouse.config — YAML Configuration Loader
=============================================

**Why this file exists:**
This module reads ``config.yaml`` for deployment settings: which variant
of club creation is active (fee-charging or free), whether the owner
index is maintained, and the deleted-channel policy.  Secrets and the
database URL live in the environment (``.env``), not here.

Usage::

    from clubhouse.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.fee_required)        # True
    print(cfg.fee_amount)          # 1000000000
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from clubhouse.constants import DEFAULT_CREATION_FEE


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ClubhouseConfig:
    """Immutable configuration loaded from ``config.yaml``.

    The two observed deployment variants differ only in ``fee_required``
    and ``owner_index``; everything else is shared.
    """

    # Identity
    community_name: str

    # Dashboard / API
    api_port: int

    # Creation fee
    fee_required: bool = False
    fee_amount: int = DEFAULT_CREATION_FEE
    fee_receiver: str | None = None  # None → the registry initializer

    # Registry indexes
    owner_index: bool = False

    # Soft-delete policy: reject rename/delete/post on deleted channels
    guard_deleted_channels: bool = False

    # Optional
    deployer_address: str | None = None  # Initializes the registry on API startup


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ClubhouseConfig:
    """Read *path* and return a :class:`ClubhouseConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    fee = raw.get("fee") or {}
    return ClubhouseConfig(
        community_name=raw["community_name"],
        api_port=int(raw["api_port"]),
        fee_required=bool(fee.get("required", False)),
        fee_amount=int(fee.get("amount", DEFAULT_CREATION_FEE)),
        fee_receiver=fee.get("receiver") or None,
        owner_index=bool(raw.get("owner_index", False)),
        guard_deleted_channels=bool(raw.get("guard_deleted_channels", False)),
        deployer_address=raw.get("deployer_address") or None,
    )
