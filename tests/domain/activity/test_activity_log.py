"""Tests for the activity audit log."""

from datetime import datetime

import pytest

from aura.core.database import get_db_connection
from aura.domain.activity import get_activity, log_activity
from aura.domain.exceptions import NotFoundError


def test_log_and_read_back(catalog) -> None:
    entry = log_activity(
        "T1", "CHANGE_STYLE", {"from_style_id": "lounge", "to_style_id": "jazz"}
    )
    assert entry.id is not None

    entries = get_activity()
    assert len(entries) == 1
    assert entries[0].action == "CHANGE_STYLE"
    assert entries[0].details == {"from_style_id": "lounge", "to_style_id": "jazz"}


def test_invalid_action_rejected(catalog) -> None:
    with pytest.raises(ValueError, match="Invalid action"):
        log_activity("T1", "SKIP")
    assert get_activity() == []


def test_unknown_terminal_rejected(catalog) -> None:
    with pytest.raises(NotFoundError):
        log_activity("T9", "PLAY")


def test_newest_first_and_limit(catalog) -> None:
    log_activity("T1", "PLAY", now=datetime(2024, 5, 1, 9, 0))
    log_activity("T1", "PAUSE", now=datetime(2024, 5, 1, 10, 0))
    log_activity("T2", "PLAY", now=datetime(2024, 5, 1, 11, 0))

    assert [e.action for e in get_activity()] == ["PLAY", "PAUSE", "PLAY"]
    assert [e.terminal_id for e in get_activity(limit=1)] == ["T2"]


def test_filters(catalog) -> None:
    log_activity("T1", "PLAY", now=datetime(2024, 5, 1, 9, 0))
    log_activity("T1", "PAUSE", now=datetime(2024, 5, 2, 9, 0))
    log_activity("T2", "PLAY", now=datetime(2024, 5, 1, 9, 30))

    assert len(get_activity(terminal_id="T1")) == 2
    assert [e.terminal_id for e in get_activity(day="2024-05-01")] == ["T2", "T1"]
    assert [e.action for e in get_activity(terminal_id="T1", day="2024-05-02")] == [
        "PAUSE"
    ]


def test_bad_day_rejected(catalog) -> None:
    with pytest.raises(ValueError):
        get_activity(day="yesterday")


def test_undecodable_details_kept_raw(catalog) -> None:
    with get_db_connection() as conn:
        conn.execute(
            "INSERT INTO activity_log (terminal_id, action, details, created_at) "
            "VALUES ('T1', 'PLAY', 'not json', '2024-05-01 09:00:00')"
        )
        conn.commit()

    assert get_activity()[0].details == {"raw": "not json"}
