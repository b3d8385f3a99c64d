"""Tests for the terminal endpoints: heartbeats, switches, resume and audit."""

from unittest.mock import patch

import pytest

from aura.domain.progress import get_play_session


@pytest.fixture
def on_lounge(client, seeded):
    response = client.post("/api/terminals/T1/change-style", json={"style_id": "lounge"})
    assert response.status_code == 200
    return response.json()


def _heartbeat(client, position, is_playing=True, terminal="T1"):
    return client.post(
        f"/api/terminals/{terminal}/save-position",
        json={"position": position, "is_playing": is_playing},
    )


class TestTerminal:
    def test_get_terminal(self, client, seeded):
        response = client.get("/api/terminals/T1")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Store One"
        assert data["group_id"] == "north"
        assert data["style"] is None
        assert data["is_playing"] is False

    def test_get_terminal_with_style(self, client, on_lounge):
        data = client.get("/api/terminals/T1").json()
        assert data["current_style_id"] == "lounge"
        assert data["style"]["mix_url"] == "https://cdn.example/lounge.mp3"

    def test_unknown_terminal(self, client, seeded):
        assert client.get("/api/terminals/T9").status_code == 404

    def test_update_settings(self, client, seeded):
        response = client.patch(
            "/api/terminals/T1", json={"volume": 35, "is_auto_mode": True}
        )
        assert response.status_code == 200
        assert response.json()["volume"] == 35
        assert response.json()["is_auto_mode"] is True

    def test_volume_out_of_range(self, client, seeded):
        response = client.patch("/api/terminals/T1", json={"volume": 150})
        assert response.status_code == 422


class TestHeartbeat:
    def test_three_heartbeats_build_one_session(self, client, on_lounge):
        for position in (10, 20, 30):
            response = _heartbeat(client, position)
            assert response.status_code == 200

        data = response.json()
        assert data == {
            "success": True,
            "style_id": "lounge",
            "last_position": 30,
            "session_total": 30,
        }
        assert get_play_session("T1", "lounge").total_played == 30

        terminal = client.get("/api/terminals/T1").json()
        assert terminal["is_playing"] is True
        assert terminal["last_played_at"] is not None

    def test_paused_heartbeat_saves_position_only(self, client, on_lounge):
        response = _heartbeat(client, 55, is_playing=False)
        assert response.status_code == 200
        assert response.json()["session_total"] is None
        assert get_play_session("T1", "lounge") is None

        position = client.get("/api/terminals/T1/position", params={"style_id": "lounge"})
        assert position.json() == {"style_id": "lounge", "position": 55}
        assert client.get("/api/terminals/T1").json()["is_playing"] is False

    def test_no_active_style(self, client, seeded):
        response = _heartbeat(client, 10)
        assert response.status_code == 400

    def test_unknown_terminal(self, client, seeded):
        assert _heartbeat(client, 10, terminal="T9").status_code == 404

    def test_negative_position_rejected(self, client, on_lounge):
        assert _heartbeat(client, -5).status_code == 422


class TestChangeStyle:
    def test_switch_back_resumes_position(self, client, on_lounge):
        _heartbeat(client, 42)

        to_jazz = client.post("/api/terminals/T1/change-style", json={"style_id": "jazz"})
        assert to_jazz.status_code == 200
        assert to_jazz.json()["resume_position"] == 0
        assert to_jazz.json()["terminal"]["current_style_id"] == "jazz"

        back = client.post("/api/terminals/T1/change-style", json={"style_id": "lounge"})
        assert back.json()["resume_position"] == 42
        assert back.json()["style"]["id"] == "lounge"

    def test_positions_are_per_terminal(self, client, on_lounge):
        _heartbeat(client, 42)
        client.post("/api/terminals/T2/change-style", json={"style_id": "lounge"})

        response = client.get("/api/terminals/T2/position", params={"style_id": "lounge"})
        assert response.json()["position"] == 0

    def test_style_without_mix(self, client, seeded):
        response = client.post("/api/terminals/T1/change-style", json={"style_id": "techno"})
        assert response.status_code == 400

    def test_unknown_style(self, client, seeded):
        response = client.post("/api/terminals/T1/change-style", json={"style_id": "polka"})
        assert response.status_code == 404

    def test_unexpected_failure_is_a_500(self, client, seeded):
        with patch(
            "web.backend.routers.terminals.change_style",
            side_effect=RuntimeError("database is locked"),
        ):
            response = client.post(
                "/api/terminals/T1/change-style", json={"style_id": "jazz"}
            )
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to change style"

    def test_position_without_style_is_zero(self, client, seeded):
        response = client.get("/api/terminals/T1/position")
        assert response.json() == {"style_id": None, "position": 0}


class TestCurrentProgram:
    def test_terminal_entry_beats_global(self, client, seeded):
        client.post(
            "/api/schedules",
            json={"start_time": "08:00", "end_time": "12:00", "style_id": "jazz"},
        )
        client.post(
            "/api/schedules",
            json={
                "start_time": "09:00",
                "end_time": "10:00",
                "style_id": "lounge",
                "terminal_id": "T1",
            },
        )

        at_nine = client.get("/api/terminals/T1/current-program", params={"at": "09:30"})
        assert at_nine.status_code == 200
        assert at_nine.json()["at"] == "09:30"
        assert at_nine.json()["style"]["id"] == "lounge"

        other = client.get("/api/terminals/T2/current-program", params={"at": "09:30"})
        assert other.json()["style"]["id"] == "jazz"

        late = client.get("/api/terminals/T1/current-program", params={"at": "18:00"})
        assert late.json()["style"] is None

    def test_does_not_change_active_style(self, client, on_lounge):
        client.post(
            "/api/schedules",
            json={"start_time": "00:00", "end_time": "23:59", "style_id": "jazz"},
        )
        client.get("/api/terminals/T1/current-program", params={"at": "12:00"})
        assert client.get("/api/terminals/T1").json()["current_style_id"] == "lounge"

    def test_bad_time(self, client, seeded):
        response = client.get("/api/terminals/T1/current-program", params={"at": "25:00"})
        assert response.status_code == 400

    def test_unknown_terminal(self, client, seeded):
        response = client.get("/api/terminals/T9/current-program")
        assert response.status_code == 404


class TestActivity:
    def test_record_change_style(self, client, seeded):
        details = {"from_style_id": "lounge", "to_style_id": "jazz", "trigger": "manual"}
        response = client.post(
            "/api/terminals/T1/activity",
            json={"action": "CHANGE_STYLE", "details": details},
        )
        assert response.status_code == 201
        assert response.json()["action"] == "CHANGE_STYLE"
        assert response.json()["details"] == details

    def test_unknown_action(self, client, seeded):
        response = client.post("/api/terminals/T1/activity", json={"action": "DANCE"})
        assert response.status_code == 400

    def test_unknown_terminal(self, client, seeded):
        response = client.post("/api/terminals/T9/activity", json={"action": "PLAY"})
        assert response.status_code == 404


class TestFavorites:
    def _toggle(self, client, style_id, terminal="T1"):
        return client.post(
            f"/api/terminals/{terminal}/favorites", json={"style_id": style_id}
        )

    def test_toggle_and_list(self, client, seeded):
        assert self._toggle(client, "lounge").json() == {"is_favorite": True}
        assert self._toggle(client, "jazz").json() == {"is_favorite": True}

        response = client.get("/api/terminals/T1/favorites")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["jazz", "lounge"]
        assert client.get("/api/terminals/T2/favorites").json() == []

        assert self._toggle(client, "jazz").json() == {"is_favorite": False}
        assert [s["id"] for s in client.get("/api/terminals/T1/favorites").json()] == [
            "lounge"
        ]

    def test_unknown_terminal_or_style(self, client, seeded):
        assert self._toggle(client, "polka").status_code == 404
        assert self._toggle(client, "jazz", terminal="T9").status_code == 404
        assert client.get("/api/terminals/T9/favorites").status_code == 404
