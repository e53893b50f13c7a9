import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("shortlinks")

Base = declarative_base()


class Database:
    """Owns the engine (connection pool) and the session factory.

    Built once per process by the app lifespan and disposed at shutdown.
    """

    def __init__(self, url: str | URL, pool_size: int = 10):
        url = make_url(url)
        if url.get_backend_name() == "sqlite":
            kwargs = {"connect_args": {"check_same_thread": False}}  # needed for SQLite + FastAPI
            if url.database in (None, "", ":memory:"):
                # one shared connection, otherwise every session gets its own empty db
                kwargs["poolclass"] = StaticPool
            self.engine = create_engine(url, **kwargs)
        else:
            # Waiting requests queue for a free connection; nothing overflows the pool.
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=30,
                pool_recycle=1800,
            )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # models must be imported so Link is registered on Base.metadata
        from shortlinks import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        logger.info("Closing database pool")
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
