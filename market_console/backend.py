import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .http_logging import HttpxTimer, log_httpx_failure, log_httpx_response
from .settings import settings

logger = logging.getLogger(__name__)


class BackendUnavailable(Exception):
    """The backend could not be reached or answered with an undecodable body."""


@dataclass(frozen=True)
class BackendResponse:
    status_code: int
    body: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))

    @property
    def message(self) -> str | None:
        message = self.body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        return None


class BackendClient:
    """JSON client for the console backend.

    Requests are sent exactly once. The console's creation endpoints are not
    idempotent, so nothing here retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.ADMIN_TOKEN
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
    ) -> BackendResponse:
        return await self._send("POST", path, json=payload, headers=headers)

    async def get(self, path: str, params: dict[str, str] | None = None) -> BackendResponse:
        return await self._send("GET", path, params=params)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> BackendResponse:
        url = f"{self.base_url}/{path.lstrip('/')}"
        timer = HttpxTimer()
        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self._headers(headers),
                )
        except httpx.HTTPError as exc:
            log_httpx_failure(method, url, exc, timer.elapsed())
            raise BackendUnavailable(f"{method} {path} failed: {exc}") from exc

        # Business failures arrive as 4xx with a JSON body, so only slowness is logged here.
        log_httpx_response(response, timer.elapsed(), log_error=response.status_code >= 500)
        return BackendResponse(response.status_code, _decode_body(response))


def _decode_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        logger.warning(
            "backend_body_undecodable status=%s body=%s",
            response.status_code,
            response.text[:200],
        )
        raise BackendUnavailable(f"undecodable body (status {response.status_code})") from exc
    if not isinstance(body, dict):
        raise BackendUnavailable(f"unexpected body type {type(body).__name__}")
    return body
