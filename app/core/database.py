"""
Database engine and session management.
"""

from collections.abc import Generator

from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    settings.DATABASE_URL, echo=settings.DATABASE_ECHO, connect_args=connect_args
)


def create_db_and_tables() -> None:
    # Table models must be imported so they register on the metadata
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """Yield one session per request."""
    with Session(engine) as session:
        yield session
