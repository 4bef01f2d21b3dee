"""
Combines expanded fields with the original record according to the retention policy.
"""

from collections.abc import Iterable
from typing import Any


def merge_record(
    original: dict[str, Any],
    new_fields: dict[str, Any],
    renew_record: bool = False,
    keep_keys: Iterable[str] = (),
    remove_keys: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Build the final record.

    1. Start from a copy of the original record, or from empty when renewing.
    2. When renewing, carry over each keep key present in the original.
    3. Overlay the new fields (new keys are appended in template order).
    4. Drop every remove key that is present.

    Args:
        original: The incoming record (never modified)
        new_fields: Expanded field templates; values may be None
        renew_record: Discard the original record as the merge base
        keep_keys: Original keys to carry over when renewing
        remove_keys: Keys to strip from the result

    Returns:
        A new dict holding the final record
    """
    if renew_record:
        merged: dict[str, Any] = {}
        for key in keep_keys:
            if key in original:
                merged[key] = original[key]
    else:
        merged = dict(original)

    merged.update(new_fields)

    for key in remove_keys:
        merged.pop(key, None)

    return merged
