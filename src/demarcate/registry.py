from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Set

from demarcate.exception import ConfigurationError

if TYPE_CHECKING:
    from demarcate.base.provider import BaseProvider
    from demarcate.manager import TransactionManager


class ProviderRegistry:
    """Every provider instance created in the process, so that they can
    be opened and closed together"""

    _singleton = None
    _providers: Set[BaseProvider]

    def __new__(cls, *args, **kwargs):
        if cls._singleton is None:
            cls.reset()
        return cls._singleton

    @classmethod
    def add(cls, provider: BaseProvider) -> None:
        instance = cls()
        instance._providers.add(provider)

    def __iter__(self):
        return iter(self._providers)

    def __len__(self):
        return len(self._providers)

    @classmethod
    def reset(cls):
        cls._singleton = super().__new__(cls)
        cls._singleton._providers = set()


class Registry:
    """
    Process-wide settings: the active connection provider and the active
    transaction manager. There is exactly one of each per process.
    """

    _singleton = None
    _provider: Optional[BaseProvider]
    _manager: Optional[TransactionManager]

    def __new__(cls, *args, **kwargs):
        if cls._singleton is None:
            cls.reset()
        return cls._singleton

    @classmethod
    def set_provider(cls, provider: Optional[BaseProvider]) -> None:
        cls()._provider = provider

    @classmethod
    def get_provider(cls) -> BaseProvider:
        """Get the active provider

        Raises:
            ConfigurationError: If no provider has been configured
        """
        provider = cls()._provider
        if provider is None:
            raise ConfigurationError(
                "No connection provider configured. Initialize Demarcate "
                "with a dsn, db_path or provider first"
            )
        return provider

    @classmethod
    def set_manager(cls, manager: Optional[TransactionManager]) -> None:
        cls()._manager = manager

    @classmethod
    def get_manager(cls) -> TransactionManager:
        """Get the active transaction manager, falling back to
        DefaultTransactionManager"""
        manager = cls()._manager
        if manager is None:
            from demarcate.manager import DefaultTransactionManager

            manager = DefaultTransactionManager
        return manager

    @classmethod
    def reset(cls):
        cls._singleton = super().__new__(cls)
        cls._singleton._provider = None
        cls._singleton._manager = None
