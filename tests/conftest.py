import json
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from market_console.backend import BackendClient
from market_console.markets.builder import MarketDraftBuilder
from market_console.session import ConsoleSession

BASE_URL = "http://backend.test/api"
SIGNER = "0x1111111111111111111111111111111111111111"
ORACLE = "0x2222222222222222222222222222222222222222"
FIXED_NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeBackend:
    """Scripted console backend behind an httpx.MockTransport."""

    def __init__(self, routes: dict[str, Any], events: list | None = None) -> None:
        self.routes = {path: list(value) if isinstance(value, list) else value for path, value in routes.items()}
        self.calls: list[dict[str, Any]] = []
        self.events = events if events is not None else []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        body = request.read()
        self.calls.append(
            {
                "method": request.method,
                "path": path,
                "json": json.loads(body) if body else None,
                "headers": dict(request.headers),
                "params": dict(request.url.params),
            }
        )
        self.events.append(f"http:{path}")
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "not found"})
        reply = route.pop(0) if isinstance(route, list) else route
        if isinstance(reply, Exception):
            raise reply
        status, payload = reply
        return httpx.Response(status, json=payload)

    def client(self, token: str | None = "admin-token") -> BackendClient:
        return BackendClient(BASE_URL, token, transport=httpx.MockTransport(self.handler))

    def paths(self) -> list[str]:
        return [call["path"] for call in self.calls]


class FakeWallet:
    def __init__(
        self,
        accounts: list[str] | list[list[str]] | None = None,
        tx_hash: str = "0x" + "ab" * 32,
        error: Exception | None = None,
        accounts_error: Exception | None = None,
        events: list | None = None,
    ) -> None:
        accounts = [SIGNER] if accounts is None else accounts
        if accounts and isinstance(accounts[0], list):
            self._account_reads = list(accounts)
        else:
            self._account_reads = None
            self._accounts = list(accounts)
        self.tx_hash = tx_hash
        self.error = error
        self.accounts_error = accounts_error
        self.events = events if events is not None else []
        self.sent: list[dict[str, Any]] = []

    async def accounts(self) -> list[str]:
        self.events.append("wallet:accounts")
        if self.accounts_error is not None:
            raise self.accounts_error
        if self._account_reads is not None:
            return self._account_reads.pop(0)
        return list(self._accounts)

    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        self.events.append("wallet:send")
        self.sent.append(transaction)
        if self.error is not None:
            raise self.error
        return self.tx_hash


@pytest.fixture()
def events() -> list:
    return []


@pytest.fixture()
def make_session():
    def _make(backend: FakeBackend, wallet: FakeWallet | None = None) -> ConsoleSession:
        return ConsoleSession(backend=backend.client(), wallet=wallet)

    return _make


def fixed_builder(market_type: str) -> MarketDraftBuilder:
    return MarketDraftBuilder(market_type, clock=lambda: FIXED_NOW, tz="UTC")


def entertainment_form(**overrides: Any) -> dict[str, Any]:
    form = {
        "title": "Best Picture 2030",
        "description": "Which film wins Best Picture?",
        "optionA": "Film A",
        "optionB": "Film B",
        "resolutionDate": "2030-03-01",
        "resolutionTime": "20:00",
        "oracle": ORACLE,
    }
    form.update(overrides)
    return form


class StubEth:
    def __init__(self, node_accounts=None, error=None):
        self._node_accounts = node_accounts or []
        self.error = error
        self.raw_sent = []
        self.sent = []

    @property
    def accounts(self):
        async def _read():
            return list(self._node_accounts)

        return _read()

    async def send_raw_transaction(self, raw):
        if self.error is not None:
            raise self.error
        self.raw_sent.append(raw)
        return bytes.fromhex("ab" * 32)

    async def send_transaction(self, tx):
        if self.error is not None:
            raise self.error
        self.sent.append(tx)
        return bytes.fromhex("cd" * 32)


class StubWeb3:
    def __init__(self, eth):
        self.eth = eth
