"""Pytest configuration for backend tests.

Every test gets its own SQLite file, seeded with one group, three styles
(one still without a mix) and two terminals.
"""

import pytest
from fastapi.testclient import TestClient

from aura.core.database import init_database
from aura.domain.catalog import create_group, create_style, create_terminal
from web.backend.main import app


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    db_path = tmp_path / "aura-api.db"
    monkeypatch.setenv("AURA_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    init_database()
    return db_path


@pytest.fixture
def seeded():
    group = create_group("North", color="#3366ff", group_id="north")
    create_style(
        "Lounge", mix_url="https://cdn.example/lounge.mp3", duration=3600, style_id="lounge"
    )
    create_style(
        "Jazz", mix_url="https://cdn.example/jazz.mp3", duration=5400, style_id="jazz"
    )
    create_style("Techno", style_id="techno")
    create_terminal("Store One", terminal_id="T1", city="Lille", group_id=group.id)
    create_terminal("Store Two", terminal_id="T2", city="Lyon")


@pytest.fixture
def client():
    return TestClient(app)
