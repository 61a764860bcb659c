"""
Database session management with SQLAlchemy.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from contextlib import contextmanager

from saasoty.core.config import settings
from saasoty.core.logging import get_logger

logger = get_logger(__name__)


def build_engine(database_url: str, **kwargs):
    """Create an engine, with SQLite connections shareable across threads."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 20)
        kwargs.setdefault("pool_timeout", 30)
        kwargs.setdefault("pool_recycle", 1800)
    return create_engine(database_url, **kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database session."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db():
    """
    Initialize database connection and run startup tasks.

    Schema is managed by Alembic migrations (`alembic upgrade head`).
    In DEBUG mode missing tables are created directly so a local SQLite
    demo works out of the box.
    """
    from sqlalchemy import inspect

    from saasoty.db.preflight import run_db_preflight
    run_db_preflight()

    # Import models to register them
    from saasoty.db import models  # noqa

    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()
    required_tables = ['users', 'requirements', 'estimates', 'purchase_orders', 'audit_logs']

    missing = [t for t in required_tables if t not in existing_tables]
    if missing:
        if settings.DEBUG:
            logger.warning(f"Missing tables {missing}; DEBUG=true so creating them (NOT for production!)")
            Base.metadata.create_all(bind=engine)
        else:
            logger.error(f"Missing required tables: {missing}. Run `alembic upgrade head`.")
            return
    else:
        logger.info(f"Database schema verified: {len(existing_tables)} tables found")

    bootstrap_admin()


def bootstrap_admin():
    """
    Bootstrap initial admin user from environment variables.

    Only runs if ADMIN_BOOTSTRAP_EMAIL and ADMIN_BOOTSTRAP_PASSWORD are set
    and no admin exists yet.
    """
    from saasoty.db.models import User
    from saasoty.core.rbac import Role
    from saasoty.core.security import get_password_hash

    email = settings.ADMIN_BOOTSTRAP_EMAIL
    password = settings.ADMIN_BOOTSTRAP_PASSWORD

    if not email or not password:
        logger.info("Admin bootstrap: ADMIN_BOOTSTRAP_EMAIL/PASSWORD not set. Skipping.")
        return

    if len(password) < 10:
        logger.warning("ADMIN_BOOTSTRAP_PASSWORD must be at least 10 characters. Skipping bootstrap.")
        return

    with get_db_context() as db:
        if db.query(User).filter(User.role == Role.ADMIN.value).first():
            logger.info("Admin bootstrap: an admin already exists. Skipping.")
            return

        db.add(User(
            email=email,
            hashed_password=get_password_hash(password),
            name="Administrator",
            role=Role.ADMIN.value,
            is_active=True,
        ))
        logger.info(f"Bootstrap admin created: {email}")
