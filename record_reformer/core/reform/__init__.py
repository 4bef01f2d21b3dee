"""
Record reform engine and configuration management.
"""

from .config_loader import ReformerConfigLoader, build_config
from .context_builder import build_context, format_event_time, resolve_hostname
from .field_reformer import FieldReformer, ReformedFields
from .record_merger import merge_record
from .reform_engine import RecordReformer

__all__ = [
    "RecordReformer",
    "ReformerConfigLoader",
    "build_config",
    "build_context",
    "format_event_time",
    "resolve_hostname",
    "FieldReformer",
    "ReformedFields",
    "merge_record",
]
