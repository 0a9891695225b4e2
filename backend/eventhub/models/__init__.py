from eventhub.models.event import Event, EventState
from eventhub.models.participation_request import ParticipationRequest, RequestStatus
from eventhub.models.rate import EventRate, RateKind
from eventhub.models.hit import EndpointHit

__all__ = [
    "Event", "EventState",
    "ParticipationRequest", "RequestStatus",
    "EventRate", "RateKind",
    "EndpointHit",
]
