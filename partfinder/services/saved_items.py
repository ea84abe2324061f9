"""Per-owner in-memory lists of saved items.

The garage keeps the current session's saved vehicles and parts here. Owners
are user ids, with ANONYMOUS for callers who are not signed in. Callers get
copies, so a list handed out can't be mutated behind the store's back.
"""

import threading
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")

ANONYMOUS = "anonymous"


class SavedItemsStore(Protocol[T]):
    def get(self, owner: str) -> list[T]: ...

    def set(self, owner: str, items: list[T]) -> None: ...

    def clear(self, owner: str) -> None: ...


class InMemorySavedItems(Generic[T]):
    """Thread-safe ``SavedItemsStore`` backed by a dict of lists."""

    def __init__(self) -> None:
        self._items: dict[str, list[T]] = {}
        self._lock = threading.Lock()

    def get(self, owner: str) -> list[T]:
        with self._lock:
            return list(self._items.get(owner, []))

    def set(self, owner: str, items: list[T]) -> None:
        with self._lock:
            self._items[owner] = list(items)

    def clear(self, owner: str) -> None:
        with self._lock:
            self._items.pop(owner, None)
