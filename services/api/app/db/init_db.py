from __future__ import annotations

import logging
import os

from services.api.app.db.database import get_engine
from services.api.app.db.models import Base

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y"}


def init_db() -> None:
    if os.getenv("VELOCIGO_DB_AUTO_CREATE", "true").strip().lower() not in _TRUTHY:
        logger.info("Skipping table creation (VELOCIGO_DB_AUTO_CREATE is off)")
        return

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready on %s", engine.url.render_as_string(hide_password=True))
