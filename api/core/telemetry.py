"""Request timing middleware emitting one canonical log line per request."""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import get_logger
from core.wide_event import clear_wide_event, init_wide_event

logger = get_logger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 1000


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _is_final_body(message: Message) -> bool:
    return message["type"] == "http.response.body" and not message.get(
        "more_body", False
    )


class RequestTimingMiddleware:
    """Times each request and logs its wide event once the body is sent.

    Every response carries ``x-request-id`` and ``x-request-duration-ms``.
    Server errors, slow requests and requests that raised are logged at
    warning; the rest at info.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_id = str(uuid.uuid4())
        client = scope.get("client")

        event = init_wide_event()
        event.update(
            request_id=request_id,
            http_method=scope.get("method", "UNKNOWN"),
            http_path=scope.get("path", ""),
            http_client_ip=client[0] if client else "unknown",
        )
        status_code: int | None = None

        async def timed_send(message: Message) -> None:
            nonlocal status_code

            if message["type"] == "http.response.start":
                status_code = message["status"]
                message["headers"] = [
                    *message.get("headers", []),
                    (b"x-request-id", request_id.encode()),
                    (b"x-request-duration-ms", f"{_elapsed_ms(started):.2f}".encode()),
                ]
            elif _is_final_body(message):
                route = scope.get("route")
                event["http_route"] = getattr(route, "path", None) or event["http_path"]
                event["http_status_code"] = status_code
                self._emit(event, started, failed=status_code is None)

            await send(message)

        try:
            await self.app(scope, receive, timed_send)
        except Exception as exc:
            event["exception_type"] = type(exc).__name__
            self._emit(event, started, failed=True)
            raise

    @staticmethod
    def _emit(event: dict, started: float, *, failed: bool) -> None:
        duration_ms = _elapsed_ms(started)
        event["duration_ms"] = round(duration_ms, 2)
        status_code = event.get("http_status_code") or 0

        noisy = failed or status_code >= 500 or duration_ms > SLOW_REQUEST_THRESHOLD_MS
        if noisy:
            logger.warning("http.request", **event)
        else:
            logger.info("http.request", **event)
        clear_wide_event()
