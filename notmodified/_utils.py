from __future__ import annotations

import calendar
import typing as tp
from email.utils import formatdate, parsedate_tz
from typing import AsyncIterator, Iterable, Iterator

HEADERS_ENCODING = "iso-8859-1"

T = tp.TypeVar("T")


def parse_date(date: str) -> tp.Optional[int]:
    parsed = parsedate_tz(date)
    if parsed is None:
        return None
    timestamp = calendar.timegm(parsed[:6])
    if parsed[9] is not None:
        timestamp -= parsed[9]
    return timestamp


def filter_items(
    items: tp.Iterable[tp.Tuple[str, T]], keys_to_exclude: tp.Iterable[str]
) -> tp.List[tp.Tuple[str, T]]:
    """
        Filter out pairs whose key is listed in `keys_to_exclude`, comparing case-insensitively.

        Repeated keys are kept in their original order, so fields such as
        Set-Cookie survive the filtering.

        Args:
            items: The (key, value) pairs to filter.
            keys_to_exclude: An iterable of string keys to exclude (case-insensitive).

        Returns:
            A new list with the specified keys excluded.

        Example:
    ```python
            original = [('a', 1), ('B', 2), ('c', 3)]
            filtered = filter_items(original, ['b'])
            # filtered will be [('a', 1), ('c', 3)]
    ```
    """
    exclude_set = {k.lower() for k in keys_to_exclude}
    return [(k, v) for k, v in items if k.lower() not in exclude_set]


async def make_async_iterator(
    iterable: Iterable[bytes],
) -> AsyncIterator[bytes]:
    for item in iterable:
        yield item


def make_sync_iterator(iterable: Iterable[bytes]) -> Iterator[bytes]:
    for item in iterable:
        yield item


def generate_http_date(timeval: tp.Optional[float] = None) -> str:
    """
    Generate an HTTP date in RFC 1123 format.

    Example output: 'Sun, 26 Oct 2025 12:34:56 GMT'
    """
    return formatdate(timeval=timeval, localtime=False, usegmt=True)
