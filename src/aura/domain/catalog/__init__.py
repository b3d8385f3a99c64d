"""
Catalog domain module.

Terminals (stores), styles (mixes) and groups as the playback core sees them.
"""

from .models import ActivityEntry, Group, PlaySession, Style, Terminal
from .styles import (
    create_group,
    create_style,
    find_style,
    get_all_styles,
    get_style,
)
from .terminals import (
    create_terminal,
    find_terminal,
    get_all_terminals,
    get_favorites,
    get_terminal,
    toggle_favorite,
    update_terminal_settings,
)

__all__ = [
    # Models
    "Terminal",
    "Style",
    "Group",
    "PlaySession",
    "ActivityEntry",
    # Styles and groups
    "create_style",
    "find_style",
    "get_style",
    "get_all_styles",
    "create_group",
    # Terminals
    "create_terminal",
    "find_terminal",
    "get_terminal",
    "get_all_terminals",
    "update_terminal_settings",
    "get_favorites",
    "toggle_favorite",
]
