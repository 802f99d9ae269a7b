"""
Owner identity for nested transactions.

A transaction belongs to exactly one owner for its whole lifetime. By default
the owner is the current thread. Code that runs several logical owners on one
thread (asyncio tasks, request handlers) can bind its own token with
`owner_scope`.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Hashable, Iterator, Optional

Identity = Callable[[], Hashable]

_owner: ContextVar[Optional[Hashable]] = ContextVar("owner", default=None)


def current_owner() -> Hashable:
    """Return the owner token bound to the current context, falling back to
    the identifier of the current thread"""
    token = _owner.get()
    if token is None:
        return threading.get_ident()
    return token


@contextmanager
def owner_scope(token: Optional[Hashable] = None) -> Iterator[Hashable]:
    """Bind an owner token for the duration of a block

    Example:

    ```python
    async def handle(request):
        with owner_scope():
            with source.transaction():
                ...
    ```

    Args:
        token (Hashable, optional): The token to bind. A fresh opaque token
            is created when omitted. Defaults to `None`.

    Yields:
        Hashable: The bound token
    """
    if token is None:
        token = object()
    reset = _owner.set(token)
    try:
        yield token
    finally:
        _owner.reset(reset)
