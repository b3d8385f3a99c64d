"""Tests for the terminal session flows: cold start, switching, shutdown."""

import asyncio

import pytest

from aura.domain.playback import LocalStateStore, PersistedPlayerState, TerminalSession
from aura.domain.playback.exceptions import BackendError


async def _settle() -> None:
    await asyncio.sleep(0.05)


@pytest.fixture
def store(tmp_path) -> LocalStateStore:
    return LocalStateStore(tmp_path / "player_state.json")


@pytest.fixture
def make_session(quiet_config, backend, audio, store):
    def _make(**config_overrides) -> TerminalSession:
        for key, value in config_overrides.items():
            setattr(quiet_config.player, key, value)
        return TerminalSession(quiet_config, client=backend, audio=audio, store=store)

    return _make


class TestColdStart:
    @pytest.mark.anyio
    async def test_resumes_active_style(self, make_session, backend, transport, styles):
        backend.terminal.update(style=styles["lounge"], volume=40)
        backend.positions["lounge"] = 42
        session = make_session()

        assert await session.start() is True
        assert transport.loaded() == [styles["lounge"]["mix_url"]]
        assert session.machine.current_style_id == "lounge"
        assert session.machine.volume == 0.4
        assert session.machine.is_playing is True

        transport.metadata_arrives()
        session.audio.poll()
        assert transport.seeks() == [42.0]
        await session.shutdown()

    @pytest.mark.anyio
    async def test_no_autoplay(self, make_session, backend, styles):
        backend.terminal["style"] = styles["lounge"]
        session = make_session(autoplay_on_start=False)

        await session.start()
        assert session.machine.is_playing is False
        await session.shutdown()

    @pytest.mark.anyio
    async def test_terminal_without_style(self, make_session, transport):
        session = make_session()

        await session.start()
        assert transport.loaded() == []
        assert session.machine.mix_url is None
        assert session.toggle_play() is False
        await session.shutdown()

    @pytest.mark.anyio
    async def test_backend_down_uses_local_state(
        self, make_session, backend, transport, store, styles
    ):
        store.save(
            PersistedPlayerState(
                volume=0.5,
                current_style_id="jazz",
                mix_url=styles["jazz"]["mix_url"],
            )
        )
        backend.down = True
        session = make_session()

        assert await session.start() is True
        assert session.backend_available is False
        assert transport.loaded() == [styles["jazz"]["mix_url"]]
        assert session.machine.is_playing is True
        await session.shutdown()

    @pytest.mark.anyio
    async def test_auto_mode_from_backend_starts_supervisor(
        self, make_session, backend, styles
    ):
        backend.terminal.update(style=styles["lounge"], is_auto_mode=True)
        session = make_session()

        await session.start()
        assert session.machine.is_auto_mode is True
        assert session.supervisor.is_running
        await session.shutdown()
        assert not session.supervisor.is_running


class TestSwitchStyle:
    @pytest.mark.anyio
    async def test_user_switch_sequence(self, make_session, backend, transport, styles):
        backend.terminal["style"] = styles["lounge"]
        backend.positions["jazz"] = 120
        session = make_session()
        await session.start()
        session.machine.progress = 42
        backend.calls.clear()

        assert await session.select_style("jazz") is True

        names = [c[0] for c in backend.calls]
        assert names.index("save_position") < names.index("change_style")
        assert backend.calls_named("save_position")[0] == ("save_position", 42, False)
        assert backend.positions["lounge"] == 42

        assert transport.loaded() == [
            styles["lounge"]["mix_url"],
            styles["jazz"]["mix_url"],
        ]
        assert session.machine.current_style_id == "jazz"
        assert session.machine.is_playing is True
        assert session.machine.progress == 120

        await _settle()
        activity = backend.calls_named("log_activity")
        assert activity[-1][1] == "CHANGE_STYLE"
        assert activity[-1][2] == {
            "from_style_id": "lounge",
            "from_style_name": "Lounge",
            "to_style_id": "jazz",
            "to_style_name": "Jazz",
            "trigger": "manual",
        }
        await session.shutdown()

    @pytest.mark.anyio
    async def test_switch_back_resumes_saved_position(
        self, make_session, backend, transport, styles
    ):
        backend.terminal["style"] = styles["lounge"]
        session = make_session()
        await session.start()
        session.machine.progress = 42

        await session.select_style("jazz")
        await session.select_style("lounge")

        assert session.machine.progress == 42
        transport.metadata_arrives()
        session.audio.poll()
        assert transport.seeks() == [42.0]
        await session.shutdown()

    @pytest.mark.anyio
    async def test_style_without_mix_refused(self, make_session, backend, transport, styles):
        backend.terminal["style"] = styles["lounge"]
        session = make_session()
        await session.start()

        assert await session.select_style("techno") is False
        assert await session.select_style("polka") is False
        assert backend.calls_named("change_style") == []
        assert session.machine.current_style_id == "lounge"
        await session.shutdown()

    @pytest.mark.anyio
    async def test_failed_switch_restores_previous_mix(
        self, make_session, backend, transport, styles
    ):
        backend.terminal["style"] = styles["lounge"]
        session = make_session()
        await session.start()
        session.machine.progress = 42
        backend.fail_change_style = True

        assert await session.switch_style(styles["jazz"]) is False
        assert session.machine.current_style_id == "lounge"
        assert session.machine.mix_url == styles["lounge"]["mix_url"]
        assert transport.loaded()[-1] == styles["lounge"]["mix_url"]
        assert session.machine.progress == 42
        assert session.machine.is_playing is True
        await session.shutdown()

    @pytest.mark.anyio
    async def test_same_style_is_a_no_op(self, make_session, backend, transport, styles):
        backend.terminal["style"] = styles["lounge"]
        session = make_session()
        await session.start()

        assert await session.switch_style(styles["lounge"]) is True
        assert backend.calls_named("change_style") == []
        assert len(transport.loaded()) == 1
        await session.shutdown()

    @pytest.mark.anyio
    async def test_late_heartbeat_cannot_land_on_new_style(
        self, make_session, backend, styles
    ):
        """A heartbeat still in flight finishes before the backend switches."""
        backend.terminal["style"] = styles["lounge"]
        session = make_session()
        await session.start()
        session.machine.progress = 42
        backend.calls.clear()
        backend.block.clear()

        session.heartbeat.submit(40, True)
        for _ in range(200):
            if backend.calls_named("save_position"):
                break
            await asyncio.sleep(0.01)
        session.heartbeat.submit(42, True)

        switch = asyncio.create_task(session.select_style("jazz"))
        await _settle()
        assert backend.calls_named("change_style") == []

        backend.block.set()
        assert await switch is True

        assert backend.calls_named("save_position") == [
            ("save_position", 40, True),
            ("save_position", 42, False),
        ]
        assert backend.positions == {"lounge": 42}
        names = [c[0] for c in backend.calls]
        last_save = max(i for i, name in enumerate(names) if name == "save_position")
        assert names.index("change_style") > last_save
        await session.shutdown()


@pytest.mark.anyio
async def test_schedule_change_in_auto_mode(make_session, backend, transport, styles):
    """Auto-mode terminal moves to the newly scheduled style from its start."""
    backend.terminal.update(style=styles["lounge"], is_auto_mode=True)
    backend.program = styles["lounge"]
    backend.positions["jazz"] = 300
    session = make_session()
    await session.start()
    await _settle()
    assert session.machine.current_style_id == "lounge"

    backend.program = styles["jazz"]
    assert await session.supervisor.check_program() is True

    assert session.machine.current_style_id == "jazz"
    assert session.machine.is_playing is True
    assert session.machine.progress == 0
    assert transport.loaded()[-1] == styles["jazz"]["mix_url"]
    transport.metadata_arrives()
    session.audio.poll()
    assert transport.seeks() == []

    await _settle()
    assert backend.calls_named("log_activity")[-1][2]["trigger"] == "schedule"
    await session.shutdown()


@pytest.mark.anyio
async def test_toggle_play_reports_activity(make_session, backend, styles):
    backend.terminal["style"] = styles["lounge"]
    session = make_session()
    await session.start()

    assert session.toggle_play() is True
    assert session.machine.is_playing is False
    await _settle()
    assert session.toggle_play() is True
    assert session.machine.is_playing is True

    await _settle()
    assert [c[1] for c in backend.calls_named("log_activity")] == ["PAUSE", "PLAY"]
    await session.shutdown()


@pytest.mark.anyio
async def test_auto_mode_and_volume_are_saved(make_session, backend, styles):
    backend.terminal["style"] = styles["lounge"]
    session = make_session()
    await session.start()

    await session.set_auto_mode(True)
    assert session.supervisor.is_running
    assert session.set_volume(120) == 100
    await _settle()
    assert backend.terminal["is_auto_mode"] is True
    assert backend.terminal["volume"] == 100

    await session.set_auto_mode(False)
    assert not session.supervisor.is_running
    await session.shutdown()


@pytest.mark.anyio
async def test_shutdown_stops_everything(make_session, backend, transport, styles):
    backend.terminal["style"] = styles["lounge"]
    session = make_session()
    await session.start()
    session.machine.progress = 77

    await session.shutdown()

    assert backend.calls_named("save_position")[-1] == ("save_position", 77, False)
    assert not session.heartbeat.is_running
    assert not transport.running
    assert backend.closed


class TestStylePicker:
    @pytest.mark.anyio
    async def test_favorites_listed_first(self, make_session, backend):
        session = make_session()
        assert await session.toggle_favorite("techno") is True
        assert await session.toggle_favorite("jazz") is True

        listed = await session.list_styles()
        assert [s["id"] for s in listed] == ["jazz", "techno", "lounge"]
        assert [s["is_favorite"] for s in listed] == [True, True, False]

        assert await session.toggle_favorite("jazz") is False
        assert [s["id"] for s in await session.list_styles()] == [
            "techno",
            "lounge",
            "jazz",
        ]

    @pytest.mark.anyio
    async def test_backend_down(self, make_session, backend):
        session = make_session()
        backend.down = True

        assert await session.toggle_favorite("jazz") is None
        with pytest.raises(BackendError):
            await session.list_styles()
