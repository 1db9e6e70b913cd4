import logging
import time

from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, Session, create_engine

from .config import DATABASE_URL, DB_INIT_BASE_DELAY, DB_INIT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=connect_args)


def get_session():
    with Session(engine) as session:
        yield session


def init_db(seed=None, max_attempts: int = DB_INIT_MAX_ATTEMPTS, base_delay: float = DB_INIT_BASE_DELAY):
    """Create tables and run ``seed(session)``, retrying while the database is unreachable.

    Waits ``base_delay * 2**attempt`` seconds between attempts and re-raises the
    last error once ``max_attempts`` is exhausted.
    """
    for attempt in range(max_attempts):
        try:
            SQLModel.metadata.create_all(engine)
            if seed is not None:
                with Session(engine) as session:
                    seed(session)
            return
        except OperationalError:
            if attempt == max_attempts - 1:
                logger.exception("Database still unreachable after %d attempts", max_attempts)
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning("Database not ready (attempt %d/%d), retrying in %.1fs", attempt + 1, max_attempts, delay)
            time.sleep(delay)
