"""Tests for schedule CRUD endpoints."""


def _create(client, **overrides):
    payload = {"start_time": "08:00", "end_time": "12:00", "style_id": "lounge"}
    payload.update(overrides)
    return client.post("/api/schedules", json=payload)


def test_create_and_list(client, seeded):
    response = _create(client)
    assert response.status_code == 201
    entry = response.json()
    assert entry["terminal_id"] is None
    assert entry["start_time"] == "08:00"

    listed = client.get("/api/schedules").json()
    assert [e["id"] for e in listed] == [entry["id"]]


def test_list_for_terminal_includes_global(client, seeded):
    global_entry = _create(client).json()
    t1_entry = _create(client, style_id="jazz", terminal_id="T1").json()
    _create(client, style_id="jazz", terminal_id="T2")

    listed = client.get("/api/schedules", params={"terminal_id": "T1"}).json()
    assert {e["id"] for e in listed} == {global_entry["id"], t1_entry["id"]}


def test_invalid_time_rejected(client, seeded):
    assert _create(client, start_time="8h").status_code == 400
    assert _create(client, end_time="24:30").status_code == 400


def test_window_crossing_midnight_rejected(client, seeded):
    assert _create(client, start_time="22:00", end_time="02:00").status_code == 400


def test_unknown_style_or_terminal(client, seeded):
    assert _create(client, style_id="polka").status_code == 404
    assert _create(client, terminal_id="T9").status_code == 404


def test_update_entry(client, seeded):
    entry = _create(client).json()

    response = client.patch(
        f"/api/schedules/{entry['id']}", json={"end_time": "14:00", "style_id": "jazz"}
    )
    assert response.status_code == 200
    assert response.json()["start_time"] == "08:00"
    assert response.json()["end_time"] == "14:00"
    assert response.json()["style_id"] == "jazz"


def test_update_invalid_window(client, seeded):
    entry = _create(client).json()
    response = client.patch(f"/api/schedules/{entry['id']}", json={"end_time": "07:00"})
    assert response.status_code == 400


def test_update_missing_entry(client, seeded):
    assert client.patch("/api/schedules/999", json={"end_time": "09:00"}).status_code == 404


def test_delete_entry(client, seeded):
    entry = _create(client).json()

    response = client.delete(f"/api/schedules/{entry['id']}")
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert client.get("/api/schedules").json() == []

    assert client.delete(f"/api/schedules/{entry['id']}").status_code == 404
