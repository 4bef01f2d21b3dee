"""
Base resolver interface for placeholder expansion.

All resolvers must inherit from BaseResolver and implement the resolve() method.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from record_reformer.core.models import PlaceholderContext


class PlaceholderError(Exception):
    """Base class for placeholder expansion failures."""
    pass


class ExpansionError(PlaceholderError):
    """Raised when a template cannot be expanded."""

    def __init__(self, template: str, cause: Exception | str):
        self.template = template
        self.cause = cause
        self.error_class = type(cause).__name__ if isinstance(cause, Exception) else "ExpansionError"
        super().__init__(f"failed to expand '{template}': {cause}")


def to_text(value: Any) -> str:
    """
    Render a resolved value for splicing into a template.

    None renders as an empty string and booleans as true/false.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BaseResolver(ABC):
    """
    Abstract base class for placeholder resolvers.

    Each resolver implements one evaluation mode (restricted, expression).
    Resolvers are stateless apart from their settings and may be shared
    across threads.
    """

    def __init__(self, auto_typecast: bool = False, logger: logging.Logger | None = None):
        """
        Initialize resolver.

        Args:
            auto_typecast: Keep the value's type for single-placeholder templates
            logger: Logger for non-fatal warnings (module logger if None)
        """
        self.auto_typecast = auto_typecast
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def resolve(self, template: str, context: PlaceholderContext, record: dict[str, Any]) -> Any:
        """
        Expand a template against a context and record.

        Args:
            template: Template string containing ${...} placeholders
            context: Per-event placeholder namespace
            record: The original (unmodified) record

        Returns:
            The expanded value (a string, None, or the raw value when
            auto_typecast applies)

        Raises:
            ExpansionError: If the template cannot be expanded
        """
        pass

    @property
    @abstractmethod
    def mode(self) -> str:
        """Return the evaluation mode identifier."""
        pass

    def _finish_single(self, value: Any) -> Any:
        """Shape the result of a template that is exactly one placeholder."""
        if value is None:
            return None
        if not self.auto_typecast:
            return to_text(value)
        # Containers are copied so the output record never shares them with the input
        if isinstance(value, (dict, list, tuple, set)):
            return copy.deepcopy(value)
        return value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(auto_typecast={self.auto_typecast})"
