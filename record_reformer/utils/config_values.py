"""
Directive value helpers for the record reformer configuration.

Host pipelines hand us directive values as loosely typed strings
("yes", "a,b,c"), while YAML files produce native booleans and lists.
These helpers normalize both shapes and raise ConfigurationError on
anything that cannot be interpreted.
"""

from typing import Any


class ConfigurationError(ValueError):
    """Raised when a reformer configuration is invalid."""
    pass


TRUE_VALUES = ("true", "yes", "on", "1")
FALSE_VALUES = ("false", "no", "off", "0")


def parse_bool(value: Any, field_name: str = "value") -> bool:
    """
    Parse a boolean directive.

    Accepts native booleans and the strings yes/no, true/false, on/off, 1/0
    (case-insensitive).

    Args:
        value: Raw directive value
        field_name: Name of the directive (for error messages)

    Returns:
        The parsed boolean

    Raises:
        ConfigurationError: If the value is not a recognised boolean

    Examples:
        >>> parse_bool("yes")
        True
        >>> parse_bool("No")
        False
    """
    if isinstance(value, bool):
        return value

    if isinstance(value, int) and value in (0, 1):
        return bool(value)

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False

    raise ConfigurationError(f"{field_name} must be a boolean (yes/no, true/false), got {value!r}")


def parse_key_list(value: Any, field_name: str = "keys") -> list[str]:
    """
    Parse a key list directive.

    Accepts a comma-separated string ("a, b,c") or a list of strings.
    Blank entries are dropped and duplicates collapse onto their first
    occurrence, so the declaration order is kept.

    Args:
        value: Raw directive value (None means empty)
        field_name: Name of the directive (for error messages)

    Returns:
        Ordered list of unique keys

    Raises:
        ConfigurationError: If the value is neither a string nor a list of strings

    Examples:
        >>> parse_key_list("eventType0,message")
        ['eventType0', 'message']
        >>> parse_key_list(["a", "a", "b"])
        ['a', 'b']
    """
    if value is None:
        return []

    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        raise ConfigurationError(
            f"{field_name} must be a comma-separated string or a list, got {type(value).__name__}"
        )

    keys: list[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ConfigurationError(f"{field_name} entries must be strings, got {item!r}")
        key = item.strip()
        if key and key not in keys:
            keys.append(key)

    return keys


def template_text(value: Any, field_name: str) -> str:
    """
    Convert a template directive value to text.

    YAML turns `count: 5` into an int; templates are always strings.

    Raises:
        ConfigurationError: If the value is a mapping or list
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        raise ConfigurationError(f"Template for '{field_name}' must be a string, got {type(value).__name__}")
    return str(value)
