"""
Placeholder resolver implementations.

Provides restricted (bare-name) and expression resolution of ${...}
placeholders behind a common interface.
"""

from .base_resolver import BaseResolver, ExpansionError, PlaceholderError, to_text
from .expression_parser import (
    EvaluationError,
    ExpressionError,
    ExpressionSyntaxError,
    UndefinedNameError,
    evaluate,
    parse_expression,
)
from .expression_resolver import ExpressionResolver
from .restricted_resolver import RestrictedResolver

__all__ = [
    "BaseResolver",
    "PlaceholderError",
    "ExpansionError",
    "RestrictedResolver",
    "ExpressionResolver",
    "ExpressionError",
    "ExpressionSyntaxError",
    "UndefinedNameError",
    "EvaluationError",
    "parse_expression",
    "evaluate",
    "to_text",
]
