"""
Wire conventions for the main service: camelCase JSON and the
"yyyy-MM-dd HH:mm:ss" timestamp pattern.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_INPUT_FORMATS = (DATE_TIME_FORMAT, "%Y-%m-%d %H:%M:%S.%f")


def parse_datetime(value):
    if isinstance(value, datetime) or value is None:
        return value
    if isinstance(value, str):
        for fmt in _INPUT_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue
    raise ValueError(f"datetime must match pattern yyyy-MM-dd HH:mm:ss, got {value!r}")


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(DATE_TIME_FORMAT)


WireDateTime = Annotated[
    datetime,
    BeforeValidator(parse_datetime),
    PlainSerializer(format_datetime, return_type=str),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
