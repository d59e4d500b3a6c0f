from .provider import PostgresConnection, PostgresProvider

__all__ = ("PostgresConnection", "PostgresProvider")
