"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from countdown.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class MilestoneORM(Base):
    """Milestone document ORM model (local stand-in for the remote store)."""

    __tablename__ = "milestones"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(500), nullable=True)
    # Raw ISO string; may be unparsable, ordering happens in Python
    target_time = Column(String(64), nullable=False, default="", index=True)
    icon = Column(String(32), nullable=False, default="flag")
    image_ref = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="upcoming")
    created_at = Column(String(64), nullable=False)
    inserted_at = Column(DateTime, default=datetime.utcnow)


class KeyValueORM(Base):
    """Local cache entry. value holds a JSON document."""

    __tablename__ = "local_cache"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ===========================================
# Database Session Management
# ===========================================


def get_engine(url: str | None = None):
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(url or settings.DATABASE_URL, echo=False)


def get_session_factory(engine=None):
    """Get async session factory."""
    engine = engine or get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine=None):
    """Initialize database tables."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
