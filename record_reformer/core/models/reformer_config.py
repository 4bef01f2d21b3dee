"""
ReformerConfig model holding the validated, immutable reform configuration.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from record_reformer.utils.config_values import parse_bool, parse_key_list


class ReformerConfig(BaseModel):
    """
    Resolved record reformer configuration.

    Built once at startup and shared read-only by every event.

    Attributes:
        tag: Template for the output tag (required, non-empty)
        field_templates: Record field name -> template, in declaration order
        enable_expression_mode: Evaluate placeholders as expressions
            (directive name: enable_ruby)
        renew_record: Start the output record empty instead of from the input
        keep_keys: Input keys carried over when renew_record is set
        remove_keys: Keys stripped from the final record
        auto_typecast: Single-placeholder templates keep the value's type
    """

    tag: str = Field(..., min_length=1)
    field_templates: dict[str, str] = Field(default_factory=dict)
    enable_expression_mode: bool = Field(True, alias="enable_ruby")
    renew_record: bool = False
    keep_keys: list[str] = Field(default_factory=list)
    remove_keys: list[str] = Field(default_factory=list)
    auto_typecast: bool = False

    @field_validator("tag")
    @classmethod
    def check_tag_not_blank(cls, v: str) -> str:
        """Reject whitespace-only tag templates."""
        if not v.strip():
            raise ValueError("tag must not be empty")
        return v

    @field_validator("enable_expression_mode", "renew_record", "auto_typecast", mode="before")
    @classmethod
    def coerce_bool(cls, v: Any, info) -> bool:
        return parse_bool(v, info.field_name)

    @field_validator("keep_keys", "remove_keys", mode="before")
    @classmethod
    def coerce_key_list(cls, v: Any, info) -> list[str]:
        return parse_key_list(v, info.field_name)

    @model_validator(mode="after")
    def check_keep_keys_with_renew(self) -> "ReformerConfig":
        """keep_keys only makes sense when the record is renewed."""
        if self.keep_keys and not self.renew_record:
            raise ValueError("keep_keys must be specified together with renew_record true")
        return self

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "tag": "reformed.${tag}",
                "field_templates": {
                    "hostname": "${hostname}",
                    "input_tag": "${tag}",
                    "message": "${hostname} ${tag_parts.last} ${message}"
                },
                "enable_ruby": True,
                "renew_record": False,
                "keep_keys": [],
                "remove_keys": ["eventType0"],
                "auto_typecast": False
            }
        }
