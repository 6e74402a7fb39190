"""Database connectivity."""

from .connector import DatabaseConnector, DisconnectListener

__all__ = [
    "DatabaseConnector",
    "DisconnectListener",
]
