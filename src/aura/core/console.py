"""Centralized Rich Console management."""

from typing import Any

from rich.console import Console
from rich.table import Table

_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def format_time(seconds: float | None) -> str:
    """Format seconds as H:MM:SS (or M:SS under an hour)."""
    if seconds is None:
        return "--:--"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def print_player_status(status: dict[str, Any]) -> None:
    """Render a terminal session status snapshot as a two-column table."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()

    style = status.get("style_name") or status.get("style_id") or "none"
    if status.get("is_playing"):
        state = "[green]playing[/green]"
    else:
        state = "[yellow]paused[/yellow]"
    table.add_row("Style", style)
    table.add_row("State", state)
    table.add_row(
        "Position",
        f"{format_time(status.get('progress'))} / {format_time(status.get('duration'))}",
    )
    table.add_row("Volume", f"{status.get('volume', 0)}%")
    table.add_row("Auto-mode", "on" if status.get("is_auto_mode") else "off")
    if not status.get("backend_available", True):
        table.add_row("Backend", "[red]unreachable at start[/red]")
    table.add_row(
        "Heartbeats",
        f"{status.get('heartbeats_sent', 0)} sent, "
        f"{status.get('heartbeat_failures', 0)} failed",
    )
    get_console().print(table)


def print_style_list(
    styles: list[dict[str, Any]], current_style_id: str | None = None
) -> None:
    """Render the style picker: favorites marked, styles without a mix dimmed."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(width=1)
    table.add_column()
    table.add_column()
    table.add_column(style="dim")

    for style in styles:
        star = "[yellow]*[/yellow]" if style.get("is_favorite") else ""
        name = style.get("name") or style["id"]
        if style["id"] == current_style_id:
            name = f"[bold green]{name}[/bold green]"
        elif not style.get("mix_url"):
            name = f"[dim]{name}[/dim]"
        note = "" if style.get("mix_url") else "coming soon"
        table.add_row(star, style["id"], name, note)
    get_console().print(table)
