"""
RestrictedResolver - substitutes bare ${name} placeholders only.
"""

import re
from typing import Any

from record_reformer.core.models import PlaceholderContext

from .base_resolver import BaseResolver, to_text

# Anything richer than a bare identifier is not a placeholder in this mode.
PLACEHOLDER_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_MISSING = object()


class RestrictedResolver(BaseResolver):
    """
    Expands `${name}` tokens by plain lookup.

    Lookup order: tag, time, hostname, then the record field of that name.
    Unknown names are warned about and contribute nothing; spans such as
    `${tag_parts[0]}` or `${tag_parts.last}` are not tokens and stay verbatim.
    This resolver never raises ExpansionError.
    """

    def resolve(self, template: str, context: PlaceholderContext, record: dict[str, Any]) -> Any:
        """
        Substitute every bare placeholder in the template.

        Args:
            template: Template string
            context: Per-event placeholder namespace
            record: The original record

        Returns:
            Expanded string, or the looked-up value (None if unknown) when
            the template is exactly one placeholder
        """
        named = context.named_values()

        single = PLACEHOLDER_PATTERN.fullmatch(template)
        if single:
            value = self._lookup(single.group(1), named, record)
            return self._finish_single(None if value is _MISSING else value)

        def replace(match: re.Match) -> str:
            value = self._lookup(match.group(1), named, record)
            return "" if value is _MISSING else to_text(value)

        return PLACEHOLDER_PATTERN.sub(replace, template)

    def _lookup(self, name: str, named: dict[str, str], record: dict[str, Any]) -> Any:
        if name in named:
            return named[name]
        if name in record:
            return record[name]

        self.logger.warning(
            f"unknown placeholder '${{{name}}}' found",
            extra={"placeholder_name": name, "mode": self.mode},
        )
        return _MISSING

    @property
    def mode(self) -> str:
        return "restricted"
