"""Database adapter layer - parameterized SQL over an async connection pool."""

from kaji.adapters.database.gateway import DatabaseGateway, DatabaseSession, Row

__all__ = [
    "DatabaseGateway",
    "DatabaseSession",
    "Row",
]
