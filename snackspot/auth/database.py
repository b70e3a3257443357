"""
SnackSpot Auckland - Database Configuration

SQLModel database setup with connection pooling.
Supports PostgreSQL (production) and SQLite (development).

Usage:
    from snackspot.auth.database import get_engine, init_db

    engine = get_engine()
    init_db(engine)  # Creates tables
"""

from typing import Callable, Optional

from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from snackspot.config import settings


def get_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine with appropriate configuration.

    In-memory SQLite shares a single connection (StaticPool) so every
    session sees the same database; file-backed SQLite and PostgreSQL
    use a regular connection pool so concurrent requests get their own
    connections.

    Args:
        database_url: Override settings.DATABASE_URL
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    # PostgreSQL configuration with connection pooling
    return create_engine(
        url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def init_db(engine: Engine) -> None:
    """
    Initialize database tables.

    Creates all tables defined in SQLModel models.
    Safe to call multiple times (uses CREATE IF NOT EXISTS).
    """
    # Import models to register them with SQLModel
    from snackspot.auth.models import User, RefreshToken  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session_factory(engine: Engine) -> Callable[[], Session]:
    """
    Create a session factory bound to engine.

    Sessions keep loaded attributes after commit so returned accounts
    stay readable once the session is closed.

    Returns:
        Callable that creates new database sessions
    """
    def session_factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return session_factory

