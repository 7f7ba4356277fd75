import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..backend import BackendClient, BackendUnavailable
from ..settings import settings

logger = logging.getLogger(__name__)


class CatalogEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    display_name: str | None = None
    name: str | None = None
    logo_url: str | None = None


class CatalogUnavailable(Exception):
    pass


class _RetryableStatus(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"status {status_code}")
        self.status_code = status_code


class ResourceCatalogClient:
    """Read-only lookups behind the sports form's pickers.

    Safe to retry, unlike anything under ``/markets``.
    """

    def __init__(self, backend: BackendClient, *, max_attempts: int | None = None) -> None:
        self.backend = backend
        self.max_attempts = max(int(max_attempts or settings.RESOURCE_MAX_ATTEMPTS), 1)

    async def leagues(self, sport: str) -> list[CatalogEntry]:
        return await self._fetch("/resources/leagues", {"sport": sport})

    async def teams(self, sport: str, league: str) -> list[CatalogEntry]:
        return await self._fetch("/resources/teams", {"sport": sport, "league": league})

    async def handicaps(self, sport: str | None = None) -> list[dict[str, Any]]:
        params = {"sport": sport} if sport else None
        body = await self._get("/resources/handicaps", params)
        data = body.get("data")
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    async def _fetch(self, path: str, params: dict[str, str]) -> list[CatalogEntry]:
        body = await self._get(path, params)
        entries: list[CatalogEntry] = []
        for raw in body.get("data") or []:
            if not isinstance(raw, dict):
                continue
            try:
                entries.append(CatalogEntry.model_validate({**raw, "id": str(raw.get("id", ""))}))
            except ValidationError:
                logger.warning("resource_entry_invalid path=%s entry=%s", path, raw)
        return entries

    async def _get(self, path: str, params: dict[str, str] | None) -> dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type((BackendUnavailable, _RetryableStatus)),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self.backend.get(path, params)
                    if response.status_code >= 500:
                        raise _RetryableStatus(response.status_code)
        except (BackendUnavailable, _RetryableStatus) as exc:
            logger.warning("resource_fetch_failed path=%s attempts=%s error=%s", path, self.max_attempts, exc)
            raise CatalogUnavailable(path) from exc

        if not response.success:
            logger.warning("resource_fetch_rejected path=%s status=%s message=%s", path, response.status_code, response.message)
            raise CatalogUnavailable(response.message or path)
        return response.body


def as_form_catalog(entries: list[CatalogEntry]) -> list[dict[str, Any]]:
    """Shape entries the way the sports form state carries them."""
    return [entry.model_dump(by_alias=True, exclude_none=True) for entry in entries]
