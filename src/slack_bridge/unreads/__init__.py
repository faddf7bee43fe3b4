"""Unread conversation aggregation."""

from .aggregator import (
    Category,
    UnreadAggregator,
    UnreadChannel,
    UnreadQuery,
    UnreadReport,
)

__all__ = ["Category", "UnreadAggregator", "UnreadChannel", "UnreadQuery", "UnreadReport"]
