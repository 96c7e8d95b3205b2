from __future__ import annotations

import logging
import types
import typing as tp
from typing import AsyncIterable, AsyncIterator

from notmodified._conditional import ConditionalOptions, not_modified_headers, should_respond_not_modified
from notmodified._models import AsyncHandler, AsyncReleaseHook, EmptyStream, Request, Response

logger = logging.getLogger(__name__)


class AsyncBodyProxy:
    """
    A response body that releases another resource when it is itself closed.

    Iterating yields the chunks of `content`. The release callback runs exactly
    once, on the first call to `aclose()`; later calls do nothing. A failing
    callback is logged and suppressed because the response that replaced the
    original body has already been finalized.

    Args:
        content: The chunks this body yields.
        on_close: Called once when the body is closed.
    """

    def __init__(self, content: AsyncIterable[bytes], on_close: AsyncReleaseHook) -> None:
        self._content = content
        self._iterator: tp.Optional[AsyncIterator[bytes]] = None
        self._on_close = on_close
        self.closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._iterator is None:
            self._iterator = self._content.__aiter__()
        return await self._iterator.__anext__()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._on_close()
        except Exception:
            logger.warning("Failed to release the original response body", exc_info=True)

    async def __aenter__(self) -> "AsyncBodyProxy":
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        await self.aclose()


class AsyncConditionalEvaluator:
    """
    Wraps a request handler and answers conditional GET requests with 304 Not Modified.

    The handler is called exactly once per request. When the request method
    is eligible, the handler answered 200 and the client's validators match
    the response's ETag or Last-Modified, the response is replaced by a 304
    that keeps the original headers minus the body-describing ones. Its empty
    body releases the original body when closed. Every other response is
    returned untouched.

    The evaluator keeps no per-request state, so one instance can serve
    concurrent requests. It is itself a handler and can be wrapped again.

    Args:
        handler: Callable that produces the full response for a request.
        options: Conditional GET options. Defaults to ConditionalOptions().

    Example:
        ```python
        async def handler(request: Request) -> Response:
            return Response(200, Headers({"ETag": '"abc"'}), stream=make_async_iterator([b"hello"]))

        evaluator = AsyncConditionalEvaluator(handler)
        response = await evaluator.handle_request(
            Request("GET", headers=Headers({"If-None-Match": '"abc"'}))
        )
        assert response.status_code == 304
        ```
    """

    def __init__(self, handler: AsyncHandler, options: ConditionalOptions | None = None) -> None:
        self.handler = handler
        self.options = options if options is not None else ConditionalOptions()

    async def handle_request(self, request: Request) -> Response:
        response = await self.handler(request)

        if not should_respond_not_modified(request, response, self.options):
            logger.debug(
                "Passing response through: method=%s url=%s status=%d",
                request.method,
                request.url,
                response.status_code,
            )
            return response

        logger.debug("Response is fresh, sending 304: method=%s url=%s", request.method, request.url)
        return Response(
            status_code=304,
            headers=not_modified_headers(response.headers, self.options),
            stream=AsyncBodyProxy(EmptyStream(), on_close=response.aclose),
            metadata=response.metadata,
        )

    async def __call__(self, request: Request) -> Response:
        return await self.handle_request(request)
