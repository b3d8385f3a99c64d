from typing import AsyncGenerator

from aura.core.database import get_db_connection


async def get_db() -> AsyncGenerator:
    """FastAPI dependency for database connections."""
    with get_db_connection() as conn:
        yield conn
