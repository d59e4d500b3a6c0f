from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Set, Type

from demarcate.base.connection import Connection
from demarcate.registry import ProviderRegistry


class BaseProvider(ABC):
    """Supplies fresh connections to transactions.

    Every call to ``open_connection`` must hand out a connection that no
    other transaction holds. Whether that connection comes from a pool is
    up to the subclass. Subclasses register themselves under their
    ``scheme`` so that a DSN can be mapped to a provider.
    """

    scheme = "dummy"
    registered_providers: Set[Type[BaseProvider]] = set()

    def __init_subclass__(cls) -> None:
        BaseProvider.registered_providers.add(cls)

    def __init__(self) -> None:
        ProviderRegistry.add(self)

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.dsn}>"

    @classmethod
    def matches(cls, scheme: str) -> bool:
        return bool(scheme) and scheme.startswith(cls.scheme)

    @property
    @abstractmethod
    def dsn(self) -> str:
        """Data source name, safe to log"""

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def open_connection(self, timeout: Optional[float] = None) -> Connection:
        ...
