"""Activity domain module - write-once audit log of terminal actions."""

from .log import VALID_ACTIONS, get_activity, log_activity

__all__ = ["VALID_ACTIONS", "log_activity", "get_activity"]
