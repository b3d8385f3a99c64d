"""
Schedule domain models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScheduleEntry:
    """A same-day time window during which a style should play.

    terminal_id=None makes the entry global: it applies to every terminal
    that has no matching entry of its own. Entries may overlap; resolution
    takes the first match in creation order.
    """

    id: int
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM", not before start_time
    style_id: str
    terminal_id: Optional[str]

    @property
    def is_global(self) -> bool:
        return self.terminal_id is None
