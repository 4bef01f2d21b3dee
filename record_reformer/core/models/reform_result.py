"""
ReformResult model representing the outcome of reforming one event (ephemeral).
"""

from pydantic import BaseModel, Field, model_validator

from .event import Event


class ReformResult(BaseModel):
    """
    Outcome of reforming an event.

    Attributes:
        event: The reformed event, or None when emission was suppressed
        suppressed: True when the tag template failed to resolve
        failed_fields: Templates whose expansion failed ("tag" for the tag template)
    """

    event: Event | None = None
    suppressed: bool = False
    failed_fields: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_event_consistency(self) -> "ReformResult":
        """A suppressed result carries no event, an emitted one must."""
        has_event = self.event is not None
        if self.suppressed and has_event:
            raise ValueError("suppressed=True but an event is present")
        if not self.suppressed and not has_event:
            raise ValueError("suppressed=False but no event is present")
        return self

    @property
    def emitted(self) -> bool:
        return not self.suppressed

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "event": {
                    "tag": "reformed.test.tag",
                    "time": 1265000645,
                    "record": {"message": "web01 tag 1"}
                },
                "suppressed": False,
                "failed_fields": []
            }
        }
