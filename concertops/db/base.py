import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from concertops import config

logger = logging.getLogger(__name__)


def _normalize_url(url: str) -> str:
    if not url:
        return url
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://"):]
    if url.startswith("postgresql://") and not url.startswith("postgresql+psycopg://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    if url.startswith("postgresql+psycopg2://"):
        return "postgresql+psycopg://" + url[len("postgresql+psycopg2://"):]
    return url


engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker] = None


def is_postgres() -> bool:
    return engine is not None and engine.dialect.name == "postgresql"


def init_db(url: Optional[str] = None) -> None:
    """Initialize SQLAlchemy engine, ensure the pgvector extension and tables.
    No-op if no database URL is configured.
    """
    global engine, SessionLocal
    raw = url if url is not None else config.database_url()
    if not raw:
        logger.info("db: DATABASE_URL not set; persistence disabled")
        return
    if engine is not None:
        return
    engine = create_engine(_normalize_url(raw), pool_pre_ping=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    if engine.dialect.name == "postgresql":
        try:
            with engine.begin() as conn:
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        except Exception as e:
            logger.warning("db: could not ensure vector extension: %s", e)
    # Import models after engine is ready to avoid circular imports
    from concertops.db.models import Base  # noqa: WPS433
    Base.metadata.create_all(engine)
    logger.info("db: initialized (%s) and tables ensured", engine.dialect.name)


def dispose_db() -> None:
    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
    engine = None
    SessionLocal = None


@contextmanager
def db_session():
    if SessionLocal is None:
        raise RuntimeError("SessionLocal is not initialized; set DATABASE_URL and restart")
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
