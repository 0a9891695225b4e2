from eventhub.schemas.event import (
    Actor, EventFull, EventShort, EventUpdate, Location, NewEvent, SortOption, StateAction,
)
from eventhub.schemas.participation_request import (
    ArbitrationStatus, ParticipationRequestResponse, StatusUpdateRequest, StatusUpdateResult,
)

__all__ = [
    "Actor", "EventFull", "EventShort", "EventUpdate", "Location", "NewEvent",
    "SortOption", "StateAction",
    "ArbitrationStatus", "ParticipationRequestResponse", "StatusUpdateRequest",
    "StatusUpdateResult",
]
