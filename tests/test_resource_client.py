import asyncio

import httpx
import pytest
from tenacity import wait_none

from conftest import FakeBackend
from market_console.resources.client import CatalogUnavailable, ResourceCatalogClient, as_form_catalog


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch):
    monkeypatch.setattr("market_console.resources.client.wait_exponential", lambda **kwargs: wait_none())


def test_leagues_retry_through_server_errors():
    backend = FakeBackend(
        {
            "/resources/leagues": [
                (503, {"success": False}),
                httpx.ConnectError("reset"),
                (200, {"success": True, "data": [{"id": "epl", "displayName": "英超", "country": "England"}]}),
            ]
        }
    )
    client = ResourceCatalogClient(backend.client(), max_attempts=3)

    leagues = asyncio.run(client.leagues("football"))

    assert [entry.id for entry in leagues] == ["epl"]
    assert leagues[0].display_name == "英超"
    assert backend.paths() == ["/resources/leagues"] * 3
    assert backend.calls[0]["params"] == {"sport": "football"}


def test_gives_up_after_max_attempts():
    backend = FakeBackend({"/resources/teams": (502, {"success": False})})
    client = ResourceCatalogClient(backend.client(), max_attempts=2)

    with pytest.raises(CatalogUnavailable):
        asyncio.run(client.teams("football", "epl"))

    assert len(backend.calls) == 2


def test_business_rejection_is_not_retried():
    backend = FakeBackend({"/resources/teams": (404, {"success": False, "message": "联赛不存在"})})
    client = ResourceCatalogClient(backend.client(), max_attempts=3)

    with pytest.raises(CatalogUnavailable, match="联赛不存在"):
        asyncio.run(client.teams("football", "nope"))

    assert len(backend.calls) == 1


def test_teams_become_form_catalog():
    backend = FakeBackend(
        {
            "/resources/teams": (
                200,
                {"success": True, "data": [{"id": 1, "displayName": "阿森纳", "logoUrl": "/a.png"}, "junk"]},
            )
        }
    )
    client = ResourceCatalogClient(backend.client())

    teams = asyncio.run(client.teams("football", "epl"))

    assert as_form_catalog(teams) == [{"id": "1", "displayName": "阿森纳", "logoUrl": "/a.png"}]
    assert backend.calls[0]["params"] == {"sport": "football", "league": "epl"}


def test_handicaps_are_passed_through():
    backend = FakeBackend({"/resources/handicaps": (200, {"success": True, "data": [{"value": -0.5}, {"value": 0}]})})
    client = ResourceCatalogClient(backend.client())

    handicaps = asyncio.run(client.handicaps("football"))

    assert handicaps == [{"value": -0.5}, {"value": 0}]
