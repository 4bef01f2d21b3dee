"""
Event model representing a single tagged record flowing through the pipeline.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Event(BaseModel):
    """
    A tagged, timestamped record delivered by the host pipeline.

    Events are immutable: reforming an event produces a new Event and
    leaves the original untouched.

    Attributes:
        tag: Dot-delimited routing label ("app.web.access")
        time: Event timestamp (epoch seconds or datetime)
        record: Ordered key/value payload
    """

    tag: str
    time: datetime | int | float
    record: dict[str, Any] = Field(default_factory=dict)

    @field_validator("time")
    @classmethod
    def check_time_representable(cls, v: datetime | int | float) -> datetime | int | float:
        """Reject times that cannot be rendered as a local timestamp."""
        try:
            if isinstance(v, datetime):
                v.astimezone()
            else:
                datetime.fromtimestamp(v)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"time {v!r} is out of range: {e}") from e
        return v

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "tag": "app.web.access",
                "time": 1265000645,
                "record": {
                    "eventType0": "bar",
                    "message": "GET /index.html"
                }
            }
        }
