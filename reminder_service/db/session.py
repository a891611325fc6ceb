"""Database session management."""

from collections.abc import Generator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from reminder_service.config import get_settings

settings = get_settings()

# Convert postgresql:// to postgresql+psycopg:// for psycopg v3 driver
database_url = settings.DATABASE_URL
if database_url.startswith("postgresql://"):
    database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

if database_url.startswith("sqlite"):
    # In-memory databases must share one connection across threads
    engine_kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs = {
        "pool_pre_ping": True,
        "connect_args": {"sslmode": "require"},
    }

engine = create_engine(database_url, echo=False, **engine_kwargs)


def get_session() -> Generator[Session, None, None]:
    """Get database session with automatic cleanup."""
    with Session(engine) as session:
        yield session
