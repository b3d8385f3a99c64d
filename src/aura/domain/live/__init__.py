"""Live domain module - read-only terminal status and listening analytics."""

from .analytics import Analytics, AnalyticsKpis, build_analytics
from .status import (
    FeaturedStyle,
    LiveStats,
    LiveStatus,
    StyleRef,
    TerminalStatus,
    build_live_status,
    get_counts,
    partition_terminals,
    pick_featured,
    sort_for_display,
)

__all__ = [
    "FeaturedStyle",
    "LiveStats",
    "LiveStatus",
    "StyleRef",
    "TerminalStatus",
    "build_live_status",
    "get_counts",
    "partition_terminals",
    "pick_featured",
    "sort_for_display",
    "Analytics",
    "AnalyticsKpis",
    "build_analytics",
]
