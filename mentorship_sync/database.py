# mentorship_sync/database.py
from typing import Optional
from fastapi.requests import HTTPConnection
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import get_settings

# Base class for declarative models
Base = declarative_base()

def get_database_url():
    settings = get_settings()
    if settings.DATABASE_URL:
        return make_url(settings.DATABASE_URL)
    return URL.create(
        "postgresql+psycopg2",
        username=settings.POSTGRES_USER,
        password=settings.POSTGRES_PASSWORD,
        host=settings.POSTGRES_HOST,
        port=settings.POSTGRES_PORT,
        database=settings.POSTGRES_DB,
    )

def get_engine(database_url: Optional[str] = None) -> Engine:
    settings = get_settings()
    url = make_url(database_url) if database_url else get_database_url()
    if url.get_backend_name() == "sqlite":
        # Store work runs in worker threads, so connections must be shareable
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )

def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory used by the record store; objects stay readable after commit."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Dependency to get a DB session
def get_db(connection: HTTPConnection):
    """Provides a database session for a request (or WebSocket) and closes it afterwards."""
    db = connection.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

# Helper function to create all tables
def create_db_and_tables(engine: Engine):
    """Creates all defined database tables."""
    from . import models  # noqa: F401  registers the mappers on Base.metadata
    Base.metadata.create_all(bind=engine)

if __name__ == "__main__":
    create_db_and_tables(get_engine())
    print("Database tables created or already exist.")
