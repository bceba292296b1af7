"""
Activity app services layer.

Writes feed entries for group changes and renders them for readers.
"""

from .activity_feed import (
    DEFAULT_FEED_LIMIT,
    MAX_FEED_LIMIT,
    record_activity,
    clamp_feed_limit,
    member_label,
    date_label,
    describe_activity,
    get_activity_feed,
)


__all__ = [
    'DEFAULT_FEED_LIMIT',
    'MAX_FEED_LIMIT',
    'record_activity',
    'clamp_feed_limit',
    'member_label',
    'date_label',
    'describe_activity',
    'get_activity_feed',
]
