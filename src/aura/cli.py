"""
Aura CLI - Entry point

Runs the backend API server, initialises its database, or runs a terminal
(the in-store player) with a small line-command console.
"""

import argparse
import asyncio
import os
import sys

from loguru import logger

from aura.core.config import Config, ensure_directories, load_config
from aura.core.console import (
    get_console,
    print_player_status,
    print_style_list,
    safe_print,
)
from aura.core.output import setup_loguru

TERMINAL_HELP = """\
Commands:
  play | pause | toggle   control playback
  styles                  list styles, favorites first
  style <id>              switch to a style (resumes where it left off)
  fav <id>                add or remove a favorite style
  auto on|off             follow the schedule automatically
  vol <0-100>             set volume
  seek <+/-seconds>       move within the mix
  status                  show player status
  quit                    stop and exit"""


def run_server(config: Config, host: str | None, port: int | None) -> int:
    """Run the backend API with uvicorn."""
    import uvicorn

    # The app reads these at import time
    if config.server.database_path:
        os.environ["AURA_DATABASE_PATH"] = config.server.database_path
    os.environ.setdefault("ALLOWED_ORIGINS", ",".join(config.server.allowed_origins))

    uvicorn.run(
        "web.backend.main:app",
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )
    return 0


def run_init_db(config: Config) -> int:
    from aura.core.database import get_database_path, init_database

    if config.server.database_path:
        os.environ["AURA_DATABASE_PATH"] = config.server.database_path
    init_database()
    print(f"Database ready at {get_database_path()}")
    return 0


async def handle_command(session, line: str) -> bool:
    """Apply one console command to a running session.

    Returns:
        False when the console should exit
    """
    parts = line.strip().split()
    if not parts:
        return True
    command, args = parts[0].lower(), parts[1:]

    if command in ("quit", "exit", "q"):
        return False

    if command == "help":
        safe_print(TERMINAL_HELP)
    elif command == "toggle":
        if not session.toggle_play():
            safe_print("Cannot play: no mix loaded or playback rejected", "red")
    elif command == "play":
        if session.machine.is_playing:
            safe_print("Already playing", "dim")
        elif not session.toggle_play():
            safe_print("Cannot play: no mix loaded or playback rejected", "red")
    elif command == "pause":
        if session.machine.is_playing:
            session.toggle_play()
        else:
            safe_print("Already paused", "dim")
    elif command == "styles":
        from aura.domain.playback import BackendError

        try:
            styles = await session.list_styles()
        except BackendError as e:
            safe_print(f"Cannot list styles: {e}", "red")
        else:
            print_style_list(styles, session.machine.current_style_id)
    elif command == "fav" and len(args) == 1:
        is_favorite = await session.toggle_favorite(args[0])
        if is_favorite is None:
            safe_print(f"Could not update favorite {args[0]}", "red")
        else:
            safe_print(f"{args[0]} {'added to' if is_favorite else 'removed from'} favorites")
    elif command == "style" and len(args) == 1:
        if await session.select_style(args[0]):
            safe_print(f"Now playing style {session.style_name or args[0]}", "green")
        else:
            safe_print(f"Could not switch to style {args[0]}", "red")
    elif command == "auto" and args and args[0] in ("on", "off"):
        await session.set_auto_mode(args[0] == "on")
        safe_print(f"Auto-mode {args[0]}")
    elif command == "vol" and len(args) == 1:
        try:
            volume = session.set_volume(max(0, min(100, int(args[0]))))
            safe_print(f"Volume {volume}%")
        except ValueError:
            safe_print("Usage: vol <0-100>", "red")
    elif command == "seek" and len(args) == 1:
        try:
            position = session.seek_relative(float(args[0]))
        except ValueError:
            safe_print("Usage: seek <+/-seconds>", "red")
        else:
            if position is None:
                safe_print("Mix length not known yet", "yellow")
    elif command == "status":
        print_player_status(session.status())
    else:
        safe_print(f"Unknown command: {line.strip()} (try 'help')", "red")
    return True


async def run_terminal_console(config: Config) -> int:
    from aura.domain.playback import TerminalSession, check_mpv_available

    if not check_mpv_available():
        safe_print("mpv not found. Install it (e.g. apt install mpv) and retry.", "red")
        return 1

    session = TerminalSession(config)
    if not await session.start():
        safe_print("Could not start audio output", "red")
        return 1

    console = get_console()
    safe_print(f"Terminal {config.terminal.terminal_id} ready. Type 'help'.", "bold")
    try:
        while True:
            try:
                line = await asyncio.to_thread(console.input, "aura> ")
            except EOFError:
                break
            if not await handle_command(session, line):
                break
    finally:
        await session.shutdown()
    return 0


def main() -> None:
    """Main entry point for the aura command."""
    parser = argparse.ArgumentParser(
        description="Aura - scheduled ambient music for store terminals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the backend API")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")

    subparsers.add_parser("init-db", help="Create the backend database")

    terminal_parser = subparsers.add_parser(
        "terminal",
        help="Run a terminal player",
        description=TERMINAL_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    terminal_parser.add_argument("--terminal-id", help="Terminal identity")
    terminal_parser.add_argument("--server-url", help="Backend base URL")

    args = parser.parse_args()
    if not args.subcommand:
        parser.print_help()
        sys.exit(2)

    config = load_config()
    ensure_directories()
    setup_loguru(config.logging)

    if args.subcommand == "serve":
        sys.exit(run_server(config, args.host, args.port))

    elif args.subcommand == "init-db":
        sys.exit(run_init_db(config))

    elif args.subcommand == "terminal":
        if args.terminal_id:
            config.terminal.terminal_id = args.terminal_id
        if args.server_url:
            config.terminal.server_url = args.server_url
        if not config.terminal.terminal_id:
            print(
                "No terminal id: pass --terminal-id, set AURA_TERMINAL_ID or "
                "[terminal] terminal_id in config.toml",
                file=sys.stderr,
            )
            sys.exit(1)
        logger.info(f"Starting terminal {config.terminal.terminal_id}")
        try:
            sys.exit(asyncio.run(run_terminal_console(config)))
        except KeyboardInterrupt:
            sys.exit(130)


if __name__ == "__main__":
    main()
