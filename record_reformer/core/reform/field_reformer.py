"""
Applies a placeholder resolver to the tag template and every field template.
"""

import logging
from typing import Any, NamedTuple

from record_reformer.core.models import PlaceholderContext, ReformerConfig
from record_reformer.core.placeholders import BaseResolver, ExpansionError, to_text

TAG_FIELD = "tag"


class ReformedFields(NamedTuple):
    tag: str | None
    fields: dict[str, Any]
    failed_fields: list[str]


class FieldReformer:
    """
    Expands the configured templates for one event.

    Every template is resolved against the original record, so the order in
    which fields are expanded never matters.
    """

    def __init__(self, resolver: BaseResolver, logger: logging.Logger | None = None):
        """
        Initialize the field reformer.

        Args:
            resolver: Resolver for the configured evaluation mode
            logger: Logger for expansion warnings (module logger if None)
        """
        self.resolver = resolver
        self.logger = logger or logging.getLogger(__name__)

    def reform(
        self,
        config: ReformerConfig,
        context: PlaceholderContext,
        record: dict[str, Any],
    ) -> ReformedFields:
        """
        Resolve the tag template and all field templates.

        Args:
            config: Reformer configuration
            context: Per-event placeholder namespace
            record: The original record

        Returns:
            ReformedFields with the new tag (None when it did not resolve to
            a non-empty string, in which case no fields are expanded), the
            new fields and the names of failed templates
        """
        failed_fields: list[str] = []

        tag_value = self._expand(TAG_FIELD, config.tag, context, record, failed_fields)
        new_tag = to_text(tag_value) if tag_value is not None else None
        if not new_tag:
            # The event will be suppressed; field templates are not expanded.
            return ReformedFields(None, {}, failed_fields)

        fields: dict[str, Any] = {}
        for name, template in config.field_templates.items():
            fields[name] = self._expand(name, template, context, record, failed_fields)

        return ReformedFields(new_tag, fields, failed_fields)

    def _expand(
        self,
        name: str,
        template: str,
        context: PlaceholderContext,
        record: dict[str, Any],
        failed_fields: list[str],
    ) -> Any:
        try:
            return self.resolver.resolve(template, context, record)
        except ExpansionError as e:
            self.logger.warning(
                str(e),
                extra={
                    "field": name,
                    "template": template,
                    "error_class": e.error_class,
                    "error": str(e.cause),
                },
            )
            failed_fields.append(name)
            return None
