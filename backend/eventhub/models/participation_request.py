"""
Participation request: a user's application for a seat at an event.

Key design decisions:
- Unique constraint on (event_id, requester_id) prevents duplicate requests
- Status field keeps cancelled/rejected requests instead of deleting rows
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from eventhub.db.base import Base, TimestampMixin


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


class ParticipationRequest(Base, TimestampMixin):
    __tablename__ = "participation_requests"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    requester_id = Column(Integer, nullable=False, index=True)
    status = Column(String(16), nullable=False, default=RequestStatus.PENDING.value)

    event = relationship("Event", back_populates="requests", lazy="raise")

    __table_args__ = (
        UniqueConstraint("event_id", "requester_id", name="uq_event_requester"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELED')",
            name="check_request_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ParticipationRequest(id={self.id}, event={self.event_id}, "
            f"requester={self.requester_id}, status={self.status})>"
        )
