import logging
import time

import httpx

from .settings import settings

logger = logging.getLogger("market_console.http")


def _slow_threshold_seconds() -> float:
    try:
        return max(float(settings.HTTPX_SLOW_REQUEST_THRESHOLD_SECONDS), 0.0)
    except (TypeError, ValueError):
        return 0.0


def log_httpx_response(
    response: httpx.Response,
    duration_seconds: float,
    *,
    log_error: bool = True,
) -> None:
    """Warn about backend responses that were slow or unsuccessful.

    POST /markets answers a wallet-signature hand-off with a 400, so callers
    that expect non-2xx bodies pass ``log_error=False`` and only slowness is
    reported.
    """
    threshold = _slow_threshold_seconds()
    is_slow = threshold > 0 and duration_seconds >= threshold
    is_error = log_error and not response.is_success
    if not (is_slow or is_error):
        return
    tag = "_".join(part for part, flag in (("error", is_error), ("slow", is_slow)) if flag)
    logger.warning(
        "backend_request_%s method=%s path=%s status=%s latency_ms=%s",
        tag,
        response.request.method,
        response.request.url.path,
        response.status_code,
        int(duration_seconds * 1000),
    )


def log_httpx_failure(method: str, url: str, exc: Exception, duration_seconds: float) -> None:
    logger.warning(
        "backend_request_unreachable method=%s url=%s error=%s latency_ms=%s",
        method,
        url,
        type(exc).__name__,
        int(duration_seconds * 1000),
    )


class HttpxTimer:
    def __init__(self) -> None:
        self._start = time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self._start
