# backend/climate_api/db/init_db.py

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from climate_api.db.base import Base
from climate_api.db.session import engine as default_engine

# Import models so all Base subclasses are registered
import climate_api.models  # noqa: F401

logger = logging.getLogger("climate.db")


def init_db(bind: Optional[Engine] = None, *, checkfirst: bool = True) -> None:
    """
    Create any missing tables from the ORM models.

    Alembic owns schema changes in deployed databases; this is for local
    SQLite files and test engines. checkfirst=True keeps it idempotent.
    """
    target = bind or default_engine
    logger.info("Initializing database schema (backend=%s)", target.url.get_backend_name())
    Base.metadata.create_all(bind=target, checkfirst=checkfirst)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
