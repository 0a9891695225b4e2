"""
Pydantic schemas for participation requests and owner arbitration batches.
"""

from enum import Enum

from pydantic import Field

from eventhub.models.participation_request import ParticipationRequest
from eventhub.schemas.common import CamelModel, WireDateTime


class ArbitrationStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class ParticipationRequestResponse(CamelModel):
    id: int
    event: int
    requester: int
    status: str
    created: WireDateTime

    @classmethod
    def from_request(cls, request: ParticipationRequest):
        return cls(
            id=request.id,
            event=request.event_id,
            requester=request.requester_id,
            status=request.status,
            created=request.created_at,
        )


class StatusUpdateRequest(CamelModel):
    request_ids: list[int] = Field(..., min_length=1)
    status: ArbitrationStatus


class StatusUpdateResult(CamelModel):
    confirmed_requests: list[ParticipationRequestResponse] = []
    rejected_requests: list[ParticipationRequestResponse] = []
