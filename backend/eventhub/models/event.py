"""
Event model with moderation state and seat accounting.

Key design decisions:
- `confirmed_requests` is denormalized (avoids COUNT over participation_requests
  on every search) and only ever changed through a version-guarded UPDATE
- `version` column enables optimistic locking for concurrent arbitration batches
- participant_limit = 0 means unlimited
- Index on (state, event_date) for the public search path
"""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from eventhub.db.base import Base, TimestampMixin


class EventState(str, Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    category_id = Column(Integer, nullable=False)
    title = Column(String(120), nullable=False)
    annotation = Column(String(2000), nullable=False)
    description = Column(Text, nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    event_date = Column(DateTime, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    participant_limit = Column(Integer, nullable=False, default=0)
    request_moderation = Column(Boolean, nullable=False, default=True)
    state = Column(String(16), nullable=False, default=EventState.PENDING.value)
    published_on = Column(DateTime, nullable=True)
    confirmed_requests = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    requests = relationship("ParticipationRequest", back_populates="event", lazy="raise")

    __table_args__ = (
        CheckConstraint("participant_limit >= 0", name="check_participant_limit_non_negative"),
        CheckConstraint("confirmed_requests >= 0", name="check_confirmed_non_negative"),
        # Final safety net against seat over-allocation
        CheckConstraint(
            "participant_limit = 0 OR confirmed_requests <= participant_limit",
            name="check_confirmed_lte_limit",
        ),
        CheckConstraint(
            "state IN ('PENDING', 'PUBLISHED', 'CANCELED')", name="check_event_state"
        ),
        Index("ix_events_state_date", "state", "event_date"),
    )

    @property
    def uri(self) -> str:
        return f"/events/{self.id}"

    @property
    def is_full(self) -> bool:
        return 0 < self.participant_limit <= self.confirmed_requests

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, state={self.state}, "
            f"confirmed={self.confirmed_requests}/{self.participant_limit})>"
        )
