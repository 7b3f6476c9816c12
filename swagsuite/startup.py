"""
startup.py — Database Startup (Idempotent)

Tables, columns, and indexes are defined in the ORM models and created via
Base.metadata.create_all(checkfirst=True). Also ensures the service user
behind x-api-key authentication exists when an API key is configured.

Called by: main.py lifespan
Depends on: database.py (engine, SessionLocal), models
"""

import os

from loguru import logger

from .database import SessionLocal, engine


def run_startup_migrations() -> None:
    """Execute all idempotent startup operations. Safe to call on every app boot."""
    if os.environ.get("TESTING"):
        logger.info("TESTING mode — skipping startup migrations")
        return

    from .models import Base

    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("ORM schema sync complete (create_all checkfirst=True)")
    _seed_service_user()


def _seed_service_user() -> None:
    from .config import settings
    from .dependencies import SERVICE_USER_EMAIL
    from .models import User

    if not settings.api_key:
        return
    db = SessionLocal()
    try:
        if not db.query(User).filter_by(email=SERVICE_USER_EMAIL).first():
            db.add(User(email=SERVICE_USER_EMAIL, username="service", first_name="Service", role="admin"))
            db.commit()
            logger.info("Created service user {}", SERVICE_USER_EMAIL)
    finally:
        db.close()
