"""
ExpressionResolver - evaluates ${...} spans with the placeholder expression grammar.
"""

from typing import Any, Iterator

from record_reformer.core.models import PlaceholderContext, TagSlicer

from .base_resolver import BaseResolver, ExpansionError, to_text
from .expression_parser import EvaluationError, ExpressionError, evaluate, parse_expression


def iter_spans(template: str) -> Iterator[tuple[int, int, str]]:
    """
    Yield (start, end, body) for every ${...} span in a template.

    The closing brace is found while skipping over quoted strings, so a
    body like `record['a}b']` is kept whole.

    Raises:
        ExpressionError: If a span is never closed
    """
    i = 0
    length = len(template)
    while True:
        start = template.find("${", i)
        if start < 0:
            return

        j = start + 2
        depth = 0
        quote = None
        while j < length:
            ch = template[j]
            if quote:
                if ch == "\\":
                    j += 2
                    continue
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    break
                depth -= 1
            j += 1

        if j >= length:
            raise ExpressionError(f"unterminated placeholder starting at position {start}")

        yield start, j + 1, template[start + 2:j]
        i = j + 1


def evaluate_span(body: str, namespace: dict[str, Any], record: dict[str, Any]) -> Any:
    """
    Parse and evaluate one placeholder body.

    Raises:
        ExpressionError: If the body fails, or evaluates to an unindexed
            tag_prefix/tag_suffix
    """
    value = evaluate(parse_expression(body.strip()), namespace, record)
    if isinstance(value, TagSlicer):
        raise EvaluationError(f"tag_{value.side} must be indexed or called, as in tag_{value.side}[1]")
    return value


class ExpressionResolver(BaseResolver):
    """
    Evaluates each `${...}` span as an expression.

    The namespace holds tag, tag_parts (alias tags), tag_prefix, tag_suffix,
    time, hostname and record; any other bare name is looked up as a record
    field. A failure in any span fails the whole template.
    """

    def resolve(self, template: str, context: PlaceholderContext, record: dict[str, Any]) -> Any:
        """
        Expand every span in the template.

        Args:
            template: Template string
            context: Per-event placeholder namespace
            record: The original record

        Returns:
            Expanded string, or the evaluated value when the template is
            exactly one placeholder

        Raises:
            ExpansionError: If any span fails to parse or evaluate
        """
        try:
            spans = list(iter_spans(template))
            if not spans:
                return template

            namespace = context.namespace()
            namespace["record"] = record

            if len(spans) == 1 and spans[0][0] == 0 and spans[0][1] == len(template):
                value = evaluate_span(spans[0][2], namespace, record)
                return self._finish_single(value)

            pieces: list[str] = []
            cursor = 0
            for start, end, body in spans:
                pieces.append(template[cursor:start])
                value = evaluate_span(body, namespace, record)
                pieces.append(to_text(value))
                cursor = end
            pieces.append(template[cursor:])
            return "".join(pieces)

        except ExpressionError as e:
            raise ExpansionError(template, e) from e

    @property
    def mode(self) -> str:
        return "expression"
