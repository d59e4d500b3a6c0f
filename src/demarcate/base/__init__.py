from .connection import Connection, Statement
from .provider import BaseProvider

__all__ = ("BaseProvider", "Connection", "Statement")
