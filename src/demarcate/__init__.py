from importlib.metadata import version

from .base.connection import Connection, Statement
from .base.provider import BaseProvider
from .decorator import transactional
from .demarcate import Demarcate
from .exception import ConfigurationError, DemarcateError, ProviderError
from .manager import DefaultTransactionManager, TransactionManager
from .sql.postgres.provider import PostgresProvider
from .sql.sqlite.provider import SQLiteProvider
from .transaction import StatefulTransaction

__version__ = version("demarcate")

__all__ = (
    "transactional",
    "BaseProvider",
    "Connection",
    "ConfigurationError",
    "DefaultTransactionManager",
    "Demarcate",
    "DemarcateError",
    "PostgresProvider",
    "ProviderError",
    "SQLiteProvider",
    "StatefulTransaction",
    "Statement",
    "TransactionManager",
)
