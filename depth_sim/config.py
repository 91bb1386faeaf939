"""
Runtime configuration.

Defaults mirror the dashboard: 10 archived simulations, 15 table rows,
20 depth-chart levels per side, a mock feed ticking every 100ms.
"""

from __future__ import annotations

import argparse
from typing import NamedTuple

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_TABLE_LEVELS = 15
DEFAULT_DEPTH_LEVELS = 20
DEFAULT_FEED_INTERVAL_MS = 100
DEFAULT_MOCK_LEVELS = 15
DEFAULT_STALE_AFTER_MS = 5000
DEFAULT_MAX_JITTER_MS = 5000.0


class SimConfig(NamedTuple):
    """Settings shared by the feed, the session and the UI."""
    history_limit: int = DEFAULT_HISTORY_LIMIT
    table_levels: int = DEFAULT_TABLE_LEVELS
    depth_levels: int = DEFAULT_DEPTH_LEVELS
    feed_interval_ms: int = DEFAULT_FEED_INTERVAL_MS
    mock_levels: int = DEFAULT_MOCK_LEVELS
    stale_after_ms: int = DEFAULT_STALE_AFTER_MS
    max_jitter_ms: float = DEFAULT_MAX_JITTER_MS

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> SimConfig:
        """Build config from parsed CLI args; missing attributes keep their defaults."""
        defaults = cls()
        values = {
            field: getattr(args, field, None)
            for field in cls._fields
        }
        return defaults._replace(**{k: v for k, v in values.items() if v is not None})
