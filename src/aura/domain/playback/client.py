"""
HTTP client for the Aura backend, as seen from one terminal.

All calls are blocking (requests); async callers run them with
asyncio.to_thread.
"""

from typing import Any, Optional

import requests
from loguru import logger

from .exceptions import BackendError, PersistenceError


class BackendClient:
    """Talks to the backend on behalf of a single terminal."""

    def __init__(
        self,
        server_url: str,
        terminal_id: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        if not terminal_id:
            raise ValueError("terminal_id is required")
        self.base_url = server_url.rstrip("/")
        self.terminal_id = terminal_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        error_cls: type[BackendError] = BackendError,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise error_cls(f"{method} {path} failed: {e}") from e

        if not response.ok:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise error_cls(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"{method} {path} returned invalid JSON") from e

    @property
    def _terminal_path(self) -> str:
        return f"/api/terminals/{self.terminal_id}"

    def get_terminal(self) -> dict[str, Any]:
        """Terminal row with its active style (or None)."""
        return self._request("GET", self._terminal_path)

    def update_terminal(self, **fields: Any) -> dict[str, Any]:
        return self._request(
            "PATCH", self._terminal_path, error_cls=PersistenceError, json=fields
        )

    def list_styles(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/styles")

    def current_program(self, at: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Style the schedule wants right now, None when nothing is scheduled."""
        params = {"at": at} if at else None
        data = self._request(
            "GET", f"{self._terminal_path}/current-program", params=params
        )
        return data.get("style")

    def get_position(self, style_id: str) -> int:
        data = self._request(
            "GET", f"{self._terminal_path}/position", params={"style_id": style_id}
        )
        return int(data.get("position", 0))

    def save_position(self, position: int, is_playing: bool) -> dict[str, Any]:
        """Heartbeat: persist progress for the terminal's active style."""
        return self._request(
            "POST",
            f"{self._terminal_path}/save-position",
            error_cls=PersistenceError,
            json={"position": int(position), "is_playing": bool(is_playing)},
        )

    def change_style(self, style_id: str) -> dict[str, Any]:
        """Make style_id active. Returns terminal, style and resume_position."""
        return self._request(
            "POST",
            f"{self._terminal_path}/change-style",
            error_cls=PersistenceError,
            json={"style_id": style_id},
        )

    def get_favorites(self) -> list[dict[str, Any]]:
        """This terminal's favorite styles, most recently added first."""
        return self._request("GET", f"{self._terminal_path}/favorites")

    def toggle_favorite(self, style_id: str) -> bool:
        data = self._request(
            "POST",
            f"{self._terminal_path}/favorites",
            error_cls=PersistenceError,
            json={"style_id": style_id},
        )
        return bool(data.get("is_favorite"))

    def log_activity(self, action: str, details: Optional[dict[str, Any]] = None) -> None:
        self._request(
            "POST",
            f"{self._terminal_path}/activity",
            error_cls=PersistenceError,
            json={"action": action, "details": details},
        )
        logger.debug(f"Reported {action} activity")

    def close(self) -> None:
        self.session.close()
