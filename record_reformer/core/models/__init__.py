"""
Core data models for the record reformer.

All models use Pydantic for runtime validation and immutability.
"""

from .event import Event
from .placeholder_context import PlaceholderContext, TagSlicer
from .reform_result import ReformResult
from .reformer_config import ReformerConfig

__all__ = [
    "Event",
    "ReformerConfig",
    "PlaceholderContext",
    "TagSlicer",
    "ReformResult",
]
