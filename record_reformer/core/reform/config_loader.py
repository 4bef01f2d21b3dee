"""
Reformer configuration management.

Turns a parsed directive tree (or a YAML file holding one) into a
validated ReformerConfig.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from record_reformer.core.models import ReformerConfig
from record_reformer.utils.config_values import ConfigurationError, template_text

# Directives with a meaning of their own; every other flat key is a field template.
BUILTIN_DIRECTIVES = frozenset({
    "tag",
    "output_tag",
    "enable_ruby",
    "renew_record",
    "keep_keys",
    "remove_keys",
    "auto_typecast",
    "record",
    "type",
})


def build_config(directives: Mapping[str, Any]) -> ReformerConfig:
    """
    Build a ReformerConfig from a directive mapping.

    Expected shape (as produced by YAML or by the host's config parser):
    ```yaml
    tag: reformed.${tag}
    enable_ruby: yes
    remove_keys: eventType0
    message: ${hostname} ${tag_parts.last} ${message}
    record:
      input_tag: ${tag}
    ```

    Flat keys that are not built-in directives (including the `message`
    shorthand) become field templates, followed by the entries of the
    `record` block; a name in both places takes the `record` value.
    `output_tag` is accepted as a deprecated synonym of `tag`. Keys that
    start with "@" belong to the host and are ignored.

    Args:
        directives: Parsed configuration tree

    Returns:
        Validated, immutable ReformerConfig

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    if not isinstance(directives, Mapping):
        raise ConfigurationError(
            f"Configuration must be a mapping of directives, got {type(directives).__name__}"
        )

    tag = directives.get("tag")
    if tag is None:
        tag = directives.get("output_tag")
    if tag is None:
        raise ConfigurationError("'tag' option is required")

    field_templates: dict[str, str] = {}
    for key, value in directives.items():
        key = str(key)
        if key in BUILTIN_DIRECTIVES or key.startswith("@"):
            continue
        field_templates[key] = template_text(value, key)

    record_block = directives.get("record")
    if record_block is not None:
        if not isinstance(record_block, Mapping):
            raise ConfigurationError(
                f"'record' must be a mapping of field templates, got {type(record_block).__name__}"
            )
        for key, value in record_block.items():
            field_templates[str(key)] = template_text(value, str(key))

    options = {
        name: directives[name]
        for name in ("enable_ruby", "renew_record", "keep_keys", "remove_keys", "auto_typecast")
        if name in directives
    }

    try:
        return ReformerConfig(
            tag=template_text(tag, "tag"),
            field_templates=field_templates,
            **options,
        )
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        message = detail.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


class ReformerConfigLoader:
    """
    Loads a reformer configuration from a YAML file.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            ConfigurationError: If the file does not exist
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise ConfigurationError(f"Reformer configuration file not found: {config_path}")

    def load_directives(self) -> dict[str, Any]:
        """
        Read the raw directive mapping.

        Raises:
            ConfigurationError: If the YAML is invalid or not a mapping
        """
        try:
            with open(self.config_path) as f:
                directives = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if directives is None:
            directives = {}
        if not isinstance(directives, dict):
            raise ConfigurationError(f"{self.config_path} must contain a mapping of directives")
        return directives

    def load_config(self) -> ReformerConfig:
        """Load and validate the configuration."""
        return build_config(self.load_directives())
