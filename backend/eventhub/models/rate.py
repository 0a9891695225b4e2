"""
Like/dislike marks left by users on published events.
An event's rating is the sum of its rates.
"""

from enum import IntEnum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, UniqueConstraint

from eventhub.db.base import Base, TimestampMixin


class RateKind(IntEnum):
    LIKE = 1
    DISLIKE = -1


class EventRate(Base, TimestampMixin):
    __tablename__ = "event_rates"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    rate = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_rate_user"),
        CheckConstraint("rate IN (1, -1)", name="check_rate_value"),
    )
