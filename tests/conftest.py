"""Shared fixtures: a fresh SQLite database per test and a seeded catalog."""

import pytest

from aura.core.database import init_database
from aura.domain.catalog import create_group, create_style, create_terminal


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point the database at a temporary file and create the schema."""
    db_path = tmp_path / "aura-test.db"
    monkeypatch.setenv("AURA_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    init_database()
    return db_path


@pytest.fixture
def catalog():
    """Two stores in one group and three styles, one without a mix."""
    group = create_group("North", color="#3366ff", group_id="north")
    create_style(
        "Lounge", mix_url="https://cdn.example/lounge.mp3", duration=3600, style_id="lounge"
    )
    create_style(
        "Jazz", mix_url="https://cdn.example/jazz.mp3", duration=5400, style_id="jazz"
    )
    create_style("Techno", style_id="techno")
    t1 = create_terminal("Store One", terminal_id="T1", city="Lille", group_id=group.id)
    t2 = create_terminal("Store Two", terminal_id="T2", city="Lyon")
    return {"group": group, "t1": t1, "t2": t2}
