"""
Reform engine for rewriting the tag and record of incoming events.

The engine validates its configuration once, then for every event builds
the placeholder context, expands the templates and merges the record.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from record_reformer.core.models import Event, ReformerConfig, ReformResult
from record_reformer.core.placeholders import BaseResolver, ExpressionResolver, RestrictedResolver

from .config_loader import ReformerConfigLoader, build_config
from .context_builder import build_context, resolve_hostname
from .field_reformer import FieldReformer
from .record_merger import merge_record


class RecordReformer:
    """
    Rewrites events according to a ReformerConfig.

    Each event is handled independently: the tag template is expanded
    first and, if it does not resolve, the event is suppressed. Otherwise
    exactly one event is emitted with the new tag, the original time and
    the merged record. Instances hold no per-event state and can be shared
    across threads.
    """

    RESOLVER_REGISTRY: dict[bool, type[BaseResolver]] = {
        True: ExpressionResolver,
        False: RestrictedResolver,
    }

    def __init__(
        self,
        config: ReformerConfig,
        hostname: str | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the reformer.

        Args:
            config: Validated reformer configuration
            hostname: Value of ${hostname}; resolved from the host if None
            logger: Logger for per-event warnings (module logger if None)
        """
        self.config = config
        self.hostname = hostname if hostname is not None else resolve_hostname()
        self.logger = logger or logging.getLogger(__name__)

        resolver_class = self.RESOLVER_REGISTRY[config.enable_expression_mode]
        self.resolver = resolver_class(auto_typecast=config.auto_typecast, logger=self.logger)
        self.field_reformer = FieldReformer(self.resolver, logger=self.logger)

        self.logger.debug(
            f"Initialized RecordReformer (mode: {self.resolver.mode}, "
            f"fields: {len(config.field_templates)}, renew_record: {config.renew_record})"
        )

    @classmethod
    def from_directives(cls, directives: Mapping[str, Any], **kwargs) -> "RecordReformer":
        """
        Create a reformer from a parsed directive mapping.

        Raises:
            ConfigurationError: If the directives are invalid
        """
        return cls(build_config(directives), **kwargs)

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs) -> "RecordReformer":
        """
        Create a reformer from a YAML configuration file.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        return cls(ReformerConfigLoader(config_path).load_config(), **kwargs)

    def reform(self, event: Event) -> ReformResult:
        """
        Reform a single event.

        Args:
            event: The incoming event (left unmodified)

        Returns:
            ReformResult holding the emitted event, or suppressed=True when
            the tag template did not resolve
        """
        context = build_context(event.tag, event.time, self.hostname)
        reformed = self.field_reformer.reform(self.config, context, event.record)

        if reformed.tag is None:
            self.logger.debug(
                f"Suppressed event from '{event.tag}': tag template did not resolve",
                extra={"input_tag": event.tag, "template": self.config.tag},
            )
            return ReformResult(suppressed=True, failed_fields=reformed.failed_fields)

        record = merge_record(
            event.record,
            reformed.fields,
            renew_record=self.config.renew_record,
            keep_keys=self.config.keep_keys,
            remove_keys=self.config.remove_keys,
        )

        return ReformResult(
            event=Event(tag=reformed.tag, time=event.time, record=record),
            failed_fields=reformed.failed_fields,
        )

    def reform_batch(self, events: Iterable[Event]) -> list[Event]:
        """
        Reform a batch of events.

        Args:
            events: Incoming events

        Returns:
            The emitted events, in input order (suppressed events are dropped)
        """
        emitted = []
        for event in events:
            result = self.reform(event)
            if result.event is not None:
                emitted.append(result.event)
        return emitted
