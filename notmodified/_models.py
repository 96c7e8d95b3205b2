from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
    Iterator,
    Mapping,
    Union,
)

from notmodified._headers import Headers
from notmodified._utils import make_async_iterator, make_sync_iterator

Stream = Union[Iterable[bytes], AsyncIterable[bytes]]


class EmptyStream:
    """A body with no content, usable from both sync and async code."""

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        raise StopIteration()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        raise StopAsyncIteration()

    def __eq__(self, value: Any) -> bool:
        return isinstance(value, EmptyStream)


@dataclass
class Request:
    method: str
    url: str = "/"
    headers: Headers = field(default_factory=Headers)
    stream: Stream = field(default_factory=EmptyStream)
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=Headers)
    stream: Stream = field(default_factory=EmptyStream)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def read(self) -> bytes:
        """
        Synchronously reads the entire response body and replaces the stream with the collected bytes.

        The original stream is closed afterwards when it supports closing.
        """
        if not isinstance(self.stream, Iterable):
            raise TypeError("Response stream is not an Iterable")

        try:
            collected = b"".join([chunk for chunk in self.stream])
        finally:
            self.close()
        self.stream = make_sync_iterator([collected])
        return collected

    async def aread(self) -> bytes:
        """
        Asynchronously reads the entire response body and replaces the stream with the collected bytes.
        """
        if not isinstance(self.stream, AsyncIterable):
            raise TypeError("Response stream is not an AsyncIterable")

        try:
            collected = b"".join([chunk async for chunk in self.stream])
        finally:
            await self.aclose()
        self.stream = make_async_iterator([collected])
        return collected

    def close(self) -> None:
        """Release the body by calling its `close` hook, if it has one."""
        close = getattr(self.stream, "close", None)
        if callable(close):
            close()

    async def aclose(self) -> None:
        """Release the body by calling its `aclose` hook, falling back to `close`."""
        aclose = getattr(self.stream, "aclose", None)
        if callable(aclose):
            await aclose()
            return
        self.close()


AsyncHandler = Callable[[Request], Awaitable[Response]]
SyncHandler = Callable[[Request], Response]
AsyncReleaseHook = Callable[[], Awaitable[None]]
SyncReleaseHook = Callable[[], None]
