from functools import wraps
from typing import Optional

from demarcate.manager import TransactionManager
from demarcate.registry import Registry


def transactional(fn=None, *, manager: Optional[TransactionManager] = None):
    """Convenience decorator to run every call of a function in its own
    transaction.

    Each call gets a freshly opened transaction as the current one. It is
    committed when the function returns and rolled back if it raises.

    Example:

    ```python
    from demarcate import Demarcate, transactional

    @transactional
    def rename_item(item_id: int, name: str) -> None:
        Demarcate.transaction().update(
            "UPDATE items SET name = ? WHERE item_id = ?", (name, item_id)
        )
    ```

    Args:
        manager (TransactionManager, optional): Manager demarcating the
            transaction. Defaults to the active manager at call time.
    """

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            active = manager or Registry.get_manager()
            return active.execute_in_context(
                active.open_transaction(), f, *args, **kwargs
            )

        return wrapper

    if fn is not None:
        return decorator(fn)
    return decorator
