"""
Wire schemas of the statistics service.

The timestamp pattern is fixed here, at this service's boundary; the main
service's client declares its own copy.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_ACCEPTED_FORMATS = (TIMESTAMP_FORMAT, "%Y-%m-%d %H:%M:%S.%f")


def parse_timestamp(value: str) -> datetime:
    for fmt in _ACCEPTED_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"timestamp must match yyyy-MM-dd HH:mm:ss, got {value!r}")


class HitCreate(BaseModel):
    app: str = Field(..., min_length=1, max_length=255)
    uri: str = Field(..., min_length=1, max_length=512)
    ip: str = Field(..., min_length=1, max_length=45)
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value):
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            raise ValueError("timestamp must be a yyyy-MM-dd HH:mm:ss string")
        return parse_timestamp(value)


class HitResponse(BaseModel):
    id: int
    app: str
    uri: str
    ip: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("timestamp")
    def _format_timestamp(self, value: datetime) -> str:
        return value.strftime(TIMESTAMP_FORMAT)


class ViewStats(BaseModel):
    app: str
    uri: str
    hits: int
