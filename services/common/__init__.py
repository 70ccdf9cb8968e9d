"""
Common utilities and configurations for Perfex services.
"""


def get_async_database_url(url: str) -> str:
    """Convert database URL to async format for async SQLAlchemy drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    elif url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://")
    else:
        return url


__all__ = [
    "get_async_database_url",
]
