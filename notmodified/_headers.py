from __future__ import annotations

from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Union,
)

HeadersInput = Union[Mapping[str, Union[str, List[str]]], Iterable[Tuple[str, str]]]


class Headers(MutableMapping[str, str]):
    """
    Ordered, case-insensitive HTTP header map.

    Names compare case-insensitively while the first spelling seen for a name
    is kept for serialization. A name can carry several values; reading it
    joins them with ", " the way HTTP folds repeated fields.

    Example:
        ```python
        headers = Headers({"ETag": '"abc"', "Content-Type": "text/html"})
        assert headers["etag"] == '"abc"'
        del headers["content-type"]
        assert list(headers) == ["ETag"]
        ```
    """

    def __init__(self, headers: HeadersInput | None = None) -> None:
        self._headers: dict[str, tuple[str, list[str]]] = {}
        if headers is None:
            return
        items = headers.items() if isinstance(headers, Mapping) else headers
        for key, value in items:
            if isinstance(value, str):
                self[key] = value
            else:
                for item in value:
                    self[key] = item

    def get_list(self, key: str) -> Optional[List[str]]:
        entry = self._headers.get(key.lower())
        if entry is None:
            return None
        return entry[1][:]

    def multi_items(self) -> Iterator[tuple[str, str]]:
        for name, values in self._headers.values():
            for value in values:
                yield name, value

    def copy(self) -> "Headers":
        return Headers(list(self.multi_items()))

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()][1])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), (key, []))[1].append(value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._headers.values())

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({list(self.multi_items())!r})"

    def __eq__(self, other_headers: Any) -> bool:
        if not isinstance(other_headers, Headers):
            return False
        return sorted((k.lower(), v) for k, v in self.multi_items()) == sorted(
            (k.lower(), v) for k, v in other_headers.multi_items()
        )
