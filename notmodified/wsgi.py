from __future__ import annotations

import itertools
import logging
import typing as t
from http import HTTPStatus

from notmodified._conditional import IF_MODIFIED_SINCE, IF_NONE_MATCH, ConditionalOptions
from notmodified._headers import Headers
from notmodified._models import Request, Response
from notmodified._sync._evaluator import SyncConditionalEvaluator

logger = logging.getLogger(__name__)

_Environ = t.Dict[str, t.Any]
_Write = t.Callable[[bytes], object]
_StartResponse = t.Callable[..., _Write]
_WSGIApp = t.Callable[[_Environ, _StartResponse], t.Iterable[bytes]]

# CGI-style environ keys holding the request validators.
_ENVIRON_VALIDATORS = {
    "HTTP_IF_NONE_MATCH": IF_NONE_MATCH,
    "HTTP_IF_MODIFIED_SINCE": IF_MODIFIED_SINCE,
}


def _close_app_iter(app_iter: t.Iterable[bytes]) -> None:
    close = getattr(app_iter, "close", None)
    if callable(close):
        close()


class _PrefixedAppIter:
    """
    Replays chunks that were produced ahead of the app iterable, then the iterable itself.

    `close()` goes straight to the app iterable, so its errors reach the server.
    """

    def __init__(self, prefix: list[bytes], rest: t.Iterable[bytes], app_iter: t.Iterable[bytes]) -> None:
        self._prefix = prefix
        self._rest = rest
        self._app_iter = app_iter

    def __iter__(self) -> t.Iterator[bytes]:
        return itertools.chain(self._prefix, self._rest)

    def close(self) -> None:
        _close_app_iter(self._app_iter)


def _is_app_response(response: Response) -> bool:
    original: str | None = response.metadata.get("wsgi_status")
    return original is not None and original.split(" ", 1)[0] == str(response.status_code)


def _status_line(response: Response) -> str:
    if _is_app_response(response):
        return t.cast(str, response.metadata["wsgi_status"])
    return f"{response.status_code} {HTTPStatus(response.status_code).phrase}"


def _header_list(response: Response) -> list[tuple[str, str]]:
    # The application's own list goes out untouched, order and spelling included
    if _is_app_response(response):
        return t.cast("list[tuple[str, str]]", response.metadata["wsgi_headers"])
    return list(response.headers.multi_items())


class WSGIConditionalGetMiddleware:
    """
    WSGI middleware that answers conditional GET requests with 304 Not Modified.

    The application is called once. Its status and headers are checked against
    the request's If-None-Match and If-Modified-Since values; a fresh, eligible
    response goes out as a 304 without Content-Type and Content-Length, and
    the iterable the application returned is closed without being iterated.
    Applications that produce their body lazily therefore never produce it.

    Applications that only call `start_response` once their iterable is
    started (generators) have their first chunk pulled to learn the status.
    Data passed to the legacy `write()` callable is buffered and emitted ahead
    of the iterable.

    Args:
        app: The WSGI application to wrap.
        options: Conditional GET options. Defaults to ConditionalOptions().

    Example:
        ```python
        from notmodified.wsgi import WSGIConditionalGetMiddleware

        application = WSGIConditionalGetMiddleware(app=my_wsgi_app)
        ```
    """

    def __init__(self, app: _WSGIApp, options: ConditionalOptions | None = None) -> None:
        self.app = app
        self.options = options if options is not None else ConditionalOptions()

        logger.info(
            "Initialized WSGIConditionalGetMiddleware with eligible_methods=%s, date_comparison=%s",
            self.options.eligible_methods,
            self.options.date_comparison,
        )

    def __call__(self, environ: _Environ, start_response: _StartResponse) -> t.Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET")
        path = environ.get("PATH_INFO", "/")

        logger.debug("Incoming HTTP request: method=%s path=%s", method, path)

        # The closure keeps environ request-local, so the instance stays shareable
        def send_request_to_app(request: Request) -> Response:
            captured: list[tuple[str, list[tuple[str, str]], t.Any]] = []
            written: list[bytes] = []

            def inner_start_response(status: str, headers: list[tuple[str, str]], exc_info: t.Any = None) -> _Write:
                # Nothing has reached the server yet, so a second call simply replaces the first
                captured[:] = [(status, headers, exc_info)]
                return written.append

            app_iter = self.app(environ, inner_start_response)
            rest: t.Iterable[bytes] = app_iter
            prefix: list[bytes] = []

            if not captured:
                logger.debug("start_response was deferred, pulling the first body chunk")
                try:
                    rest = iter(app_iter)
                    prefix.append(next(rest))
                except StopIteration:
                    pass
                except Exception:
                    _close_app_iter(app_iter)
                    raise

            if not captured:
                _close_app_iter(app_iter)
                raise RuntimeError("WSGI application did not call start_response")

            status, headers, exc_info = captured[-1]

            stream: t.Iterable[bytes] = app_iter
            if written or prefix:
                stream = _PrefixedAppIter(written + prefix, rest, app_iter)

            return Response(
                status_code=int(status.split(" ", 1)[0]),
                headers=Headers(headers),
                stream=stream,
                metadata={"wsgi_status": status, "wsgi_headers": headers, "wsgi_exc_info": exc_info},
            )

        evaluator = SyncConditionalEvaluator(send_request_to_app, self.options)

        try:
            response = evaluator.handle_request(self._wsgi_to_internal_request(environ))
        except Exception as e:
            logger.error(
                "Error calling wrapped application: method=%s path=%s error=%s",
                method,
                path,
                str(e),
                exc_info=True,
            )
            raise

        start_response(
            _status_line(response),
            _header_list(response),
            response.metadata.get("wsgi_exc_info"),
        )

        logger.info(
            "Request processed: method=%s path=%s status=%d",
            method,
            path,
            response.status_code,
        )
        return t.cast(t.Iterable[bytes], response.stream)

    def _wsgi_to_internal_request(self, environ: _Environ) -> Request:
        """
        Convert a WSGI environ to an internal Request object.

        Only the validators are copied into the headers, the body stays in
        `wsgi.input` for the application.
        """
        path = environ.get("PATH_INFO", "/")
        query_string = environ.get("QUERY_STRING", "")
        if query_string:
            path = f"{path}?{query_string}"

        headers = Headers()
        for environ_key, header_name in _ENVIRON_VALIDATORS.items():
            if environ_key in environ:
                headers[header_name] = environ[environ_key]

        return Request(
            method=environ.get("REQUEST_METHOD", "GET"),
            url=path,
            headers=headers,
        )
