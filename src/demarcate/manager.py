from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, TypeVar

from demarcate.base.provider import BaseProvider
from demarcate.registry import Registry
from demarcate.transaction import StatefulTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionManager:
    """Hands out the *current* transaction of the calling context.

    The current transaction lives in a context variable, so every thread
    and every asyncio task works with its own transaction and nothing is
    shared between them. A task inherits the binding its parent had when
    the task was created.

    Custom managers subclass this and override `open_transaction`, then get
    activated with `Demarcate(transaction_manager=...)`.

    Example:

    ```python
    manager = Demarcate.manager()

    def create_item(name):
        manager.get_transaction().update(
            "INSERT INTO items (name) VALUES (?)", (name,)
        )

    manager.execute_in_context(manager.open_transaction(), create_item, "foo")
    ```
    """

    def __init__(self, provider: Optional[BaseProvider] = None) -> None:
        """
        Args:
            provider (BaseProvider, optional): Where new transactions get
                their connections. Defaults to the active provider at the
                time a transaction is opened.
        """
        self._provider = provider
        self._current: ContextVar[Optional[StatefulTransaction]] = ContextVar(
            f"transaction_{id(self)}", default=None
        )

    def __str__(self) -> str:
        return f"<{self.__class__.__name__}>"

    @property
    def provider(self) -> BaseProvider:
        return self._provider or Registry.get_provider()

    def has_live_transaction(self) -> bool:
        """Does the current context have a live transaction?"""
        transaction = self._current.get()
        return transaction is not None and transaction.is_live

    def get_transaction(self) -> StatefulTransaction:
        """Retrieve the current transaction, opening and binding a new one
        if there is no live one"""
        if not self.has_live_transaction():
            self.set_transaction(self.open_transaction())
        return self._current.get()  # type: ignore

    def set_transaction(
        self, transaction: Optional[StatefulTransaction]
    ) -> None:
        """Bind `transaction` as the current transaction, live or not"""
        self._current.set(transaction)

    def open_transaction(self) -> StatefulTransaction:
        """Open a new transaction on a fresh connection"""
        transaction = StatefulTransaction(self.provider.open_connection())
        logger.debug("Opened new transaction %s", transaction)
        return transaction

    @contextmanager
    def context(
        self, transaction: Optional[StatefulTransaction] = None
    ) -> Iterator[StatefulTransaction]:
        """Make `transaction` the current one for the duration of the block.

        On normal exit the transaction is committed. If the block raises,
        it is rolled back and the exception propagates untouched. Either
        way the transaction is closed and whatever was current before is
        current again afterwards.

        A failing rollback or close never replaces the exception raised by
        the block; it is logged instead.

        Args:
            transaction (StatefulTransaction, optional): The transaction
                to demarcate. Defaults to a newly opened one.

        Yields:
            StatefulTransaction: The bound transaction
        """
        if transaction is None:
            transaction = self.open_transaction()
        prev_tx = self._current.get() if self.has_live_transaction() else None
        failed = False
        self.set_transaction(transaction)
        try:
            yield transaction
            if transaction.is_live:
                transaction.commit()
                logger.debug("Committed current transaction.")
        except BaseException:
            failed = True
            if transaction.is_live:
                try:
                    transaction.rollback()
                except Exception:
                    logger.critical(
                        "Rollback of current transaction failed",
                        exc_info=True,
                    )
                else:
                    logger.error("Rolled back current transaction.")
            raise
        finally:
            try:
                self._close(transaction, suppress=failed)
            finally:
                self.set_transaction(prev_tx)

    def execute_in_context(
        self,
        transaction: Optional[StatefulTransaction],
        block: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Call `block` with `transaction` as the current transaction, then
        commit it, or roll it back if `block` raises.

        See `context` for the exact guarantees.

        Returns:
            T: Whatever `block` returns
        """
        with self.context(transaction):
            return block(*args, **kwargs)

    def _close(self, transaction: StatefulTransaction, suppress: bool):
        if not transaction.is_live:
            return
        try:
            transaction.close()
        except Exception:
            if not suppress:
                raise
            logger.critical(
                "Closing current connection failed", exc_info=True
            )
        else:
            logger.debug("Closed current connection.")


DefaultTransactionManager = TransactionManager()
