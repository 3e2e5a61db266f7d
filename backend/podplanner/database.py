"""Database engine, session factory and transaction scope."""
import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from podplanner.config import settings
from podplanner.errors import Conflict

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a multi-statement write as one unit.

    Commits when the block exits normally and rolls back on any exception.
    Unique/foreign-key violations raised by the database are re-raised as
    ``Conflict`` so callers see a 409 instead of a 500.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error, transaction rolled back: %s", exc.orig)
        raise Conflict("The change conflicts with existing data") from exc
    except BaseException:
        db.rollback()
        raise


SUPPORTED_DIALECTS = ("postgresql", "sqlite")


def check_dialect(dialect: str) -> None:
    """Only dialects with INSERT ... ON CONFLICT are supported."""
    if dialect not in SUPPORTED_DIALECTS:
        raise RuntimeError(
            f"Unsupported database dialect {dialect!r}; expected one of: {', '.join(SUPPORTED_DIALECTS)}"
        )


def upsert_insert(db: Session, model):
    """INSERT construct supporting ``on_conflict_do_update`` for the bound dialect."""
    dialect = db.get_bind().dialect.name
    check_dialect(dialect)
    if dialect == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)
