"""
Configuration management for Aura terminals and the Aura server
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger


@dataclass
class PlayerConfig:
    """Configuration for the terminal's audio player."""

    mpv_socket_path: Optional[str] = None
    volume: int = 70  # 0-100, used until the backend reports the terminal's own volume
    autoplay_on_start: bool = True
    heartbeat_interval_seconds: float = 10.0
    program_poll_interval_seconds: float = 30.0
    status_poll_interval_seconds: float = 0.5

    def validate(self) -> None:
        """Clamp and validate player configuration values.

        Raises:
            ValueError: If an interval is not positive
        """
        self.volume = max(0, min(100, int(self.volume)))
        for name in (
            "heartbeat_interval_seconds",
            "program_poll_interval_seconds",
            "status_poll_interval_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than 0")


@dataclass
class TerminalConfig:
    """Identity of this terminal and where its backend lives."""

    terminal_id: str = ""
    server_url: str = "http://localhost:8642"
    request_timeout_seconds: float = 5.0


@dataclass
class ServerConfig:
    """Configuration for the Aura web backend."""

    host: str = "127.0.0.1"
    port: int = 8642
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173"]
    )
    database_path: Optional[str] = None  # Default: data dir / aura.db


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: ~/.local/share/aura/aura.log
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "aura"
    return Path.home() / ".config" / "aura"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so a checkout's config.toml wins over the
    user's global one.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/aura (or ~/.config/aura)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "aura"
    return Path.home() / ".local" / "share" / "aura"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Aura Configuration

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/aura-mpv-socket"

# Volume used before the backend reports this terminal's volume (0-100)
volume = 70

# Start the mix as soon as the terminal comes up
autoplay_on_start = true

# Seconds between position heartbeats while playing
heartbeat_interval_seconds = 10

# Seconds between schedule checks while auto-mode is on
program_poll_interval_seconds = 30

# Seconds between player status polls
status_poll_interval_seconds = 0.5

[terminal]
# Identity of this terminal (store) in the backend
# terminal_id = "store-001"

server_url = "http://localhost:8642"
request_timeout_seconds = 5.0

[server]
host = "127.0.0.1"
port = 8642
allowed_origins = ["http://localhost:5173"]

# SQLite database location (default: ~/.local/share/aura/aura.db)
# database_path = "/var/lib/aura/aura.db"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/aura/aura.log)
# log_file = "/path/to/aura.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5

# Also output logs to stderr
console_output = false
""".strip()


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides on top of TOML values."""
    terminal_id = os.environ.get("AURA_TERMINAL_ID")
    server_url = os.environ.get("AURA_SERVER_URL")
    database_path = os.environ.get("AURA_DATABASE_PATH")
    allowed_origins = os.environ.get("ALLOWED_ORIGINS")

    if terminal_id:
        config.terminal.terminal_id = terminal_id
    if server_url:
        config.terminal.server_url = server_url
    if database_path:
        config.server.database_path = database_path
    if allowed_origins:
        config.server.allowed_origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]
    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - AURA_TERMINAL_ID
    - AURA_SERVER_URL
    - AURA_DATABASE_PATH
    - ALLOWED_ORIGINS (comma separated)
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            logger.info(f"Created default configuration at: {config_path}")
        except OSError as e:
            logger.warning(f"Could not write default configuration to {config_path}: {e}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        config = Config()

        if "player" in toml_data:
            player_data = toml_data["player"]
            config.player = PlayerConfig(
                mpv_socket_path=player_data.get("mpv_socket_path"),
                volume=player_data.get("volume", config.player.volume),
                autoplay_on_start=player_data.get(
                    "autoplay_on_start", config.player.autoplay_on_start
                ),
                heartbeat_interval_seconds=player_data.get(
                    "heartbeat_interval_seconds",
                    config.player.heartbeat_interval_seconds,
                ),
                program_poll_interval_seconds=player_data.get(
                    "program_poll_interval_seconds",
                    config.player.program_poll_interval_seconds,
                ),
                status_poll_interval_seconds=player_data.get(
                    "status_poll_interval_seconds",
                    config.player.status_poll_interval_seconds,
                ),
            )
            try:
                config.player.validate()
            except ValueError as e:
                logger.warning(f"Invalid player configuration: {e}. Using defaults.")
                config.player = PlayerConfig()

        if "terminal" in toml_data:
            terminal_data = toml_data["terminal"]
            config.terminal = TerminalConfig(
                terminal_id=str(
                    terminal_data.get("terminal_id", config.terminal.terminal_id)
                ),
                server_url=terminal_data.get(
                    "server_url", config.terminal.server_url
                ).rstrip("/"),
                request_timeout_seconds=terminal_data.get(
                    "request_timeout_seconds",
                    config.terminal.request_timeout_seconds,
                ),
            )

        if "server" in toml_data:
            server_data = toml_data["server"]
            database_path = server_data.get("database_path")
            if database_path:
                database_path = str(Path(database_path).expanduser())
            config.server = ServerConfig(
                host=server_data.get("host", config.server.host),
                port=server_data.get("port", config.server.port),
                allowed_origins=server_data.get(
                    "allowed_origins", config.server.allowed_origins
                ),
                database_path=database_path,
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            log_file = logging_data.get("log_file")
            if log_file:
                log_file = str(Path(log_file).expanduser())
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=log_file,
                max_file_size_mb=logging_data.get(
                    "max_file_size_mb", config.logging.max_file_size_mb
                ),
                backup_count=logging_data.get(
                    "backup_count", config.logging.backup_count
                ),
                console_output=logging_data.get(
                    "console_output", config.logging.console_output
                ),
            )

        return _apply_env_overrides(config)

    except Exception as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        return _apply_env_overrides(Config())


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
