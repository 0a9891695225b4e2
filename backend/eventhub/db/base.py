"""
Declarative base and shared column mixins.
Datetimes are stored as naive UTC so that PostgreSQL and SQLite behave alike.
"""

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase

from eventhub.core.clock import utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
