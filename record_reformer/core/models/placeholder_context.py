"""
PlaceholderContext model representing the per-event placeholder namespace.
"""

from typing import Any

from pydantic import BaseModel, Field


class TagSlicer:
    """
    Joins a slice of tag parts back into a dotted tag.

    Supports both call and index syntax so that `tag_prefix(1)` and
    `tag_prefix[1]` mean the same thing. Slicing follows Python semantics:
    prefix(n) is parts[:n], suffix(n) is parts[n:], and out-of-range
    indices clamp instead of failing.
    """

    def __init__(self, parts: tuple[str, ...], side: str):
        if side not in ("prefix", "suffix"):
            raise ValueError(f"side must be 'prefix' or 'suffix', got {side!r}")
        self.parts = parts
        self.side = side

    def __call__(self, n: int) -> str:
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"tag_{self.side} index must be an integer, got {type(n).__name__}")
        selected = self.parts[:n] if self.side == "prefix" else self.parts[n:]
        return ".".join(selected)

    def __getitem__(self, n: int) -> str:
        return self(n)

    def __repr__(self) -> str:
        return f"TagSlicer(side={self.side}, parts={self.parts})"


class PlaceholderContext(BaseModel):
    """
    Read-only placeholder namespace derived once per event.

    Attributes:
        tag: The incoming tag
        tag_parts: Tag split on "." (an empty tag yields a single empty part)
        time: Event time rendered as text
        hostname: Host name resolved once at reformer startup
    """

    tag: str
    tag_parts: tuple[str, ...] = Field(..., min_length=1)
    time: str
    hostname: str

    class Config:
        frozen = True

    @property
    def tags(self) -> tuple[str, ...]:
        """Deprecated alias of tag_parts."""
        return self.tag_parts

    def tag_prefix(self, n: int) -> str:
        return TagSlicer(self.tag_parts, "prefix")(n)

    def tag_suffix(self, n: int) -> str:
        return TagSlicer(self.tag_parts, "suffix")(n)

    def named_values(self) -> dict[str, str]:
        """Scalar names recognised by restricted placeholders."""
        return {
            "tag": self.tag,
            "time": self.time,
            "hostname": self.hostname,
        }

    def namespace(self) -> dict[str, Any]:
        """Full namespace visible to placeholder expressions."""
        parts = list(self.tag_parts)
        return {
            **self.named_values(),
            "tag_parts": parts,
            "tags": parts,
            "tag_prefix": TagSlicer(self.tag_parts, "prefix"),
            "tag_suffix": TagSlicer(self.tag_parts, "suffix"),
        }
