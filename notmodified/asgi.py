from __future__ import annotations

import logging
import typing as t

from notmodified._conditional import ConditionalOptions, not_modified_headers, should_respond_not_modified
from notmodified._headers import Headers
from notmodified._models import Request, Response
from notmodified._utils import HEADERS_ENCODING

# Configure logger for this module
logger = logging.getLogger(__name__)


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Message = t.Dict[str, t.Any]
_Receive = t.Callable[[], t.Awaitable[_Message]]
_Send = t.Callable[[_Message], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]

# Messages that finish a response body in one go.
_BODY_COMPLETING_MESSAGES = ("http.response.pathsend", "http.response.zerocopysend")


class ASGIConditionalGetMiddleware:
    """
    ASGI middleware that answers conditional GET requests with 304 Not Modified.

    The wrapped application is called once per request. The decision is taken
    when the application sends `http.response.start`, since status and headers
    are fully known at that point. For a fresh, eligible response the client
    receives a 304 carrying the original headers minus Content-Type and
    Content-Length, followed by a single empty body message once the
    application has finished its own body. Everything the application sends
    for the original body is dropped. Other responses are forwarded unchanged.

    The middleware keeps no per-request state on the instance, so it is safe
    to use for concurrent requests.

    Args:
        app: The ASGI application to wrap.
        options: Conditional GET options. Defaults to ConditionalOptions().

    Example:
        ```python
        from notmodified.asgi import ASGIConditionalGetMiddleware

        app = ASGIConditionalGetMiddleware(app=my_asgi_app)
        ```
    """

    def __init__(self, app: _ASGIApp, options: ConditionalOptions | None = None) -> None:
        self.app = app
        self.options = options if options is not None else ConditionalOptions()

        logger.info(
            "Initialized ASGIConditionalGetMiddleware with eligible_methods=%s, date_comparison=%s",
            self.options.eligible_methods,
            self.options.date_comparison,
        )

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        """
        Handle an ASGI request.

        Args:
            scope: The ASGI scope dictionary.
            receive: The ASGI receive callable.
            send: The ASGI send callable.
        """
        # Only handle HTTP requests
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = scope.get("path", "/")

        logger.debug("Incoming HTTP request: method=%s path=%s", method, path)

        request = self._asgi_to_internal_request(scope)

        status_code = 0
        response_started = False
        not_modified = False
        body_complete = False
        dropped_bytes = 0

        async def finish_not_modified_body() -> None:
            nonlocal body_complete
            body_complete = True
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            logger.debug("Sent empty 304 body: dropped_bytes=%d", dropped_bytes)

        async def inner_send(message: _Message) -> None:
            nonlocal status_code, response_started, not_modified, dropped_bytes

            if message["type"] == "http.response.start":
                response_started = True
                response = Response(
                    status_code=message["status"],
                    headers=self._asgi_to_internal_headers(message.get("headers", [])),
                )
                if should_respond_not_modified(request, response, self.options):
                    not_modified = True
                    status_code = 304
                    logger.debug("Response is fresh, sending 304: method=%s path=%s", method, path)
                    await send(
                        {
                            "type": "http.response.start",
                            "status": 304,
                            "headers": self._internal_to_asgi_headers(
                                not_modified_headers(response.headers, self.options)
                            ),
                        }
                    )
                    return
                status_code = response.status_code
                logger.debug("Passing response through: status=%d", status_code)
                await send(message)
                return

            if not not_modified:
                await send(message)
                return

            if body_complete:
                return

            if message["type"] == "http.response.body":
                dropped_bytes += len(message.get("body", b""))
                if not message.get("more_body", False):
                    await finish_not_modified_body()
            elif message["type"] in _BODY_COMPLETING_MESSAGES:
                await finish_not_modified_body()

        try:
            await self.app(scope, receive, inner_send)
        except Exception as e:
            logger.error(
                "Error calling wrapped application: method=%s path=%s error=%s",
                method,
                path,
                str(e),
                exc_info=True,
            )
            raise

        if not_modified and not body_complete:
            await finish_not_modified_body()

        if not response_started:
            logger.info("Request finished without starting a response: method=%s path=%s", method, path)
            return

        logger.info(
            "Request processed: method=%s path=%s status=%d",
            method,
            path,
            status_code,
        )

    def _asgi_to_internal_request(self, scope: _Scope) -> Request:
        """
        Convert an ASGI HTTP scope to an internal Request object.

        Only the method, path and headers matter for the freshness decision,
        the request body is left with the application.
        """
        path = scope.get("path", "/")
        query_string = scope.get("query_string", b"")
        if query_string:
            path = f"{path}?{query_string.decode(HEADERS_ENCODING)}"

        return Request(
            method=scope.get("method", "GET"),
            url=path,
            headers=self._asgi_to_internal_headers(scope.get("headers", [])),
        )

    @staticmethod
    def _asgi_to_internal_headers(raw_headers: t.Iterable[tuple[bytes, bytes]]) -> Headers:
        return Headers(
            [(key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING)) for key, value in raw_headers]
        )

    @staticmethod
    def _internal_to_asgi_headers(headers: Headers) -> list[tuple[bytes, bytes]]:
        return [
            (key.lower().encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING))
            for key, value in headers.multi_items()
        ]
