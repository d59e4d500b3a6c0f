from .provider import SQLiteConnection, SQLiteProvider

__all__ = ("SQLiteConnection", "SQLiteProvider")
