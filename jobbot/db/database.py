"""
Database connection and session management
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a database engine for the given URL"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases live as long as their single connection
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,   # Verify connections before use
        pool_recycle=300,     # Recycle connections every 5 minutes
    )


def create_db_and_tables(engine: Engine) -> None:
    """Create database tables"""
    # Table models register themselves on import
    from ..models import application, automation, job, resume  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Generator[Session, None, None]:
    """Get database session for dependency injection"""
    with Session(request.app.state.engine) as session:
        yield session
