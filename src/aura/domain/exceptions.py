"""Backend exceptions shared by the catalog, schedule and progress domains."""


class AuraError(Exception):
    """Base exception for backend operations."""

    pass


class NotFoundError(AuraError):
    """Raised when a terminal, style or schedule entry does not exist."""

    def __init__(self, kind: str, entity_id: object):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class NoActiveStyleError(AuraError):
    """Raised when a heartbeat arrives for a terminal with no active style."""

    def __init__(self, terminal_id: str):
        self.terminal_id = terminal_id
        super().__init__(f"Terminal {terminal_id} has no active style")


class StyleUnavailableError(AuraError):
    """Raised when selecting a style that has no mix yet ("coming soon")."""

    def __init__(self, style_id: str):
        self.style_id = style_id
        super().__init__(f"Style {style_id} has no mix and cannot be selected")
