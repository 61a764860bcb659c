"""
Database preflight check to ensure connectivity before starting the application.
"""
import sys
import time
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from saasoty.core.config import settings
from saasoty.core.logging import get_logger

logger = get_logger("db_preflight")


def _safe_url(db_url: str) -> str:
    # Keep credentials out of the logs
    return db_url.split("@")[-1] if "@" in db_url else db_url.split("://")[0] + "://..."


def run_db_preflight(retries: int = 5, delay: int = 2, engine=None):
    """
    Attempts to connect to the database and runs a simple query.
    Exits the process if the database stays unreachable.
    """
    if engine is None:
        from saasoty.db.session import engine

    logger.info(f"Running DB preflight check against: {_safe_url(settings.DATABASE_URL)}")

    for attempt in range(1, retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection successful.")
            return True
        except OperationalError as e:
            err_msg = str(e)

            if "password authentication failed" in err_msg.lower():
                logger.error("FATAL: DATABASE AUTHENTICATION FAILED. Check DATABASE_URL credentials.")
                sys.exit(1)

            if attempt < retries:
                logger.warning(f"Attempt {attempt}/{retries} failed: {err_msg}. Retrying in {delay}s...")
                time.sleep(delay)
            else:
                logger.error(f"CRITICAL: Could not connect to database after {retries} attempts.")
                logger.error(f"Error: {err_msg}")
                sys.exit(1)


if __name__ == "__main__":
    run_db_preflight()
