"""SQLAlchemy engine, session factory and the atomic statement batch."""
import logging
from typing import Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql.expression import Executable

from chapterhouse.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
class GuardFailed(Exception):
    """The guard statement of a batch matched no row; nothing was written."""


def run_batch(db: Session, statements: Sequence[Executable], guard: Optional[Executable] = None) -> None:
    """Execute an ordered list of statements as one transaction.

    Either every statement commits or none does. A ``guard`` runs first and
    must affect exactly one row, otherwise the batch is abandoned with
    ``GuardFailed``. Store errors roll the session back and propagate to the
    caller unchanged; nothing is retried.
    """
    count = len(statements) + (guard is not None)
    try:
        if guard is not None and db.execute(guard).rowcount != 1:
            raise GuardFailed()
        for statement in statements:
            db.execute(statement)
        db.commit()
    except GuardFailed:
        db.rollback()
        logger.warning("Batch of %d statements abandoned, guard matched no row", count)
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Batch of %d statements failed, rolled back", count)
        raise
    logger.debug("Committed batch of %d statements", count)
