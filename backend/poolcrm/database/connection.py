"""
Database connection management for the pool construction CRM.

Provides database engine, session management, and connection utilities.
"""
import os
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from .models import Base
from .tenancy import install_row_level_security

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./poolcrm.db")


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with SQLite-friendly pooling where needed."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_tables(bind: Engine = None):
    """Create all database tables and, on PostgreSQL, tenant policies."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    install_row_level_security(bind)


def drop_tables(bind: Engine = None):
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class DatabaseManager:
    """Database management utilities."""

    @staticmethod
    def init_db():
        """Initialize the database with tables."""
        create_tables()
