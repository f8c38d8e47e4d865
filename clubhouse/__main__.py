"""
clubhouse.__main__ — Entry point for ``python -m clubhouse``
=============================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (soft settings) for the listening port.
3. Serve the FastAPI app with uvicorn.  Table creation and the registry
   bootstrap happen in the app's lifespan.

Run with::

    python -m clubhouse
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from clubhouse.config import load_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logger = logging.getLogger("clubhouse")


def main() -> None:
    """Load settings and run the Clubhouse API."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(os.getenv("CLUBHOUSE_CONFIG", "config.yaml"))
    logger.info("Config loaded — %s on port %d", cfg.community_name, cfg.api_port)

    # 3. Serve (blocks until Ctrl+C or SIGTERM).
    uvicorn.run("clubhouse.api.main:app", host="0.0.0.0", port=cfg.api_port)


if __name__ == "__main__":
    main()
