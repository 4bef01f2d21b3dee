"""
Builds the per-event placeholder context from a tag, a timestamp and the hostname.
"""

import socket
from datetime import datetime

from record_reformer.core.models import PlaceholderContext

# Matches how the host pipeline renders event times ("2010-02-01 03:04:05 +0900").
TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def resolve_hostname() -> str:
    """Return this host's name; called once when a reformer is created."""
    return socket.gethostname().strip()


def format_event_time(time: datetime | int | float) -> str:
    """
    Render an event time in local time.

    Epoch seconds are converted to local time; naive datetimes are taken
    to already be local time.

    Args:
        time: Epoch seconds or datetime

    Returns:
        Formatted timestamp
    """
    if isinstance(time, datetime):
        moment = time.astimezone()
    else:
        moment = datetime.fromtimestamp(time).astimezone()
    return moment.strftime(TIME_FORMAT)


def build_context(tag: str, time: datetime | int | float, hostname: str) -> PlaceholderContext:
    """
    Derive the placeholder namespace for one event.

    Args:
        tag: Incoming event tag
        time: Event timestamp
        hostname: Hostname resolved at startup

    Returns:
        Immutable PlaceholderContext
    """
    return PlaceholderContext(
        tag=tag,
        tag_parts=tuple(tag.split(".")),
        time=format_event_time(time),
        hostname=hostname,
    )
