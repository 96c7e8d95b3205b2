from __future__ import annotations

import logging
import types
import typing as tp
from typing import Iterable, Iterator

from notmodified._conditional import ConditionalOptions, not_modified_headers, should_respond_not_modified
from notmodified._models import SyncHandler, SyncReleaseHook, EmptyStream, Request, Response

logger = logging.getLogger(__name__)


class SyncBodyProxy:
    """
    A response body that releases another resource when it is itself closed.

    Iterating yields the chunks of `content`. The release callback runs exactly
    once, on the first call to `close()`; later calls do nothing. A failing
    callback is logged and suppressed because the response that replaced the
    original body has already been finalized.

    Args:
        content: The chunks this body yields.
        on_close: Called once when the body is closed.
    """

    def __init__(self, content: Iterable[bytes], on_close: SyncReleaseHook) -> None:
        self._content = content
        self._iterator: tp.Optional[Iterator[bytes]] = None
        self._on_close = on_close
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._iterator is None:
            self._iterator = self._content.__iter__()
        return self._iterator.__next__()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._on_close()
        except Exception:
            logger.warning("Failed to release the original response body", exc_info=True)

    def __enter__(self) -> "SyncBodyProxy":
        return self

    def __exit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        self.close()


class SyncConditionalEvaluator:
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
        def handler(request: Request) -> Response:
            return Response(200, Headers({"ETag": '"abc"'}), stream=make_sync_iterator([b"hello"]))

        evaluator = SyncConditionalEvaluator(handler)
        response = evaluator.handle_request(
            Request("GET", headers=Headers({"If-None-Match": '"abc"'}))
        )
        assert response.status_code == 304
        ```
    """

    def __init__(self, handler: SyncHandler, options: ConditionalOptions | None = None) -> None:
        self.handler = handler
        self.options = options if options is not None else ConditionalOptions()

    def handle_request(self, request: Request) -> Response:
        response = self.handler(request)

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
            stream=SyncBodyProxy(EmptyStream(), on_close=response.close),
            metadata=response.metadata,
        )

    def __call__(self, request: Request) -> Response:
        return self.handle_request(request)
