"""
Keyed registry with explicit insert-or-replace semantics.
"""

from typing import Generic, Iterator, Protocol, TypeVar


class Keyed(Protocol):
    @property
    def key(self) -> str: ...


T = TypeVar("T", bound=Keyed)


class Registry(Generic[T]):
    """Mapping from key to component.

    ``put`` never refuses a duplicate: it replaces the previous entry and
    reports that it did, so the caller decides whether to warn or reject.
    """

    def __init__(self) -> None:
        self._items: dict[str, T] = {}

    def put(self, item: T) -> bool:
        """Insert or replace ``item``. Returns True if an entry was replaced."""
        replaced = self._items.pop(item.key, None) is not None
        # a replacement counts as a fresh registration for tie-breaking
        self._items[item.key] = item
        return replaced

    def remove(self, key: str) -> T | None:
        return self._items.pop(key, None)

    def get(self, key: str) -> T | None:
        return self._items.get(key)

    def keys(self) -> list[str]:
        return list(self._items.keys())

    def values(self) -> list[T]:
        """Registered components in registration order."""
        return list(self._items.values())

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())

    def __len__(self) -> int:
        return len(self._items)
