"""Cursor pagination helpers.

Paginated endpoints answer with a list of items under a known key and a
``next_cursor``. A missing or empty ``next_cursor`` means the list is exhausted.
"""
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..status import status

FetchFunc = Callable[[Optional[str]], Dict[str, Any]]


class CursorList:
    """Accumulates the items of a cursor-paginated list.

    Args:
        key: Name of the list in the page payload, e.g. ``'expenses'`` or ``'months'``.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.items: List[Dict[str, Any]] = []
        self.cursor: Optional[str] = None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    @property
    def has_more(self) -> bool:
        return bool(self.cursor)

    def _page_items(self, page: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = page.get(self.key) or []
        if not isinstance(items, list):
            raise status.RequestFailedException(f'Malformed "{self.key}" list in server answer.')
        return items

    def reset(self, page: Dict[str, Any]) -> None:
        """Replace the items with the first page of a list."""
        self.items = list(self._page_items(page))
        self.cursor = page.get('next_cursor') or None

    def extend(self, page: Dict[str, Any]) -> None:
        """Append the next page.

        Raises:
            status.PaginationException: If the page repeats the cursor that fetched it.
        """
        next_cursor = page.get('next_cursor') or None
        if next_cursor and next_cursor == self.cursor:
            raise status.PaginationException(f'Cursor "{next_cursor}" was repeated.')

        self.items.extend(self._page_items(page))
        self.cursor = next_cursor

    def clear(self) -> None:
        self.items = []
        self.cursor = None


def iter_pages(fetch: FetchFunc, key: str) -> Iterator[List[Dict[str, Any]]]:
    """Yield the item lists of every page by chaining ``next_cursor``.

    Args:
        fetch: Callable taking a cursor (``None`` for the first page) and returning a page.
        key: Name of the list in the page payload.

    Raises:
        status.PaginationException: If the server repeats a cursor.
    """
    seen = set()
    cursor = None
    while True:
        page = fetch(cursor)
        yield page.get(key) or []

        cursor = page.get('next_cursor') or None
        if not cursor:
            return
        if cursor in seen:
            raise status.PaginationException(f'Cursor "{cursor}" was repeated.')
        seen.add(cursor)


def fetch_all(fetch: FetchFunc, key: str) -> List[Dict[str, Any]]:
    """Returns the concatenated items of every page."""
    items: List[Dict[str, Any]] = []
    for page_items in iter_pages(fetch, key):
        items.extend(page_items)
    return items
