import asyncio

import httpx

from conftest import FakeBackend, entertainment_form, fixed_builder
from market_console.markets.errors import FailureKind
from market_console.markets.gateway import Accepted, CreationGateway, Rejected, RequiresWalletSignature
from market_console.markets import messages


def _draft(**overrides):
    return fixed_builder("entertainment").build(entertainment_form(**overrides))


def test_success_is_accepted_with_backend_data():
    backend = FakeBackend({"/markets": (201, {"success": True, "message": "ok", "data": {"id": 42}})})
    draft = _draft()

    result = asyncio.run(CreationGateway(backend.client()).submit(draft))

    assert isinstance(result, Accepted)
    assert result.data == {"id": 42}
    assert result.message == "ok"
    call = backend.calls[0]
    assert call["method"] == "POST"
    assert call["json"]["optionA"] == "Film A"
    assert call["json"]["resolutionTime"] == "2030-03-01T20:00:00.000Z"


def test_request_carries_bearer_token_and_idempotency_key():
    backend = FakeBackend({"/markets": (200, {"success": True})})
    draft = _draft()

    asyncio.run(CreationGateway(backend.client("secret")).submit(draft))

    headers = backend.calls[0]["headers"]
    assert headers["authorization"] == "Bearer secret"
    assert headers["idempotency-key"] == draft.idempotency_key
    assert backend.calls[0]["json"]["idempotencyKey"] == draft.idempotency_key


def test_wallet_signature_flag_wins_over_400_status():
    market_data = {"title": "Best Picture 2030", "optionA": "Film A", "optionB": "Film B"}
    backend = FakeBackend(
        {
            "/markets": (
                400,
                {"success": False, "requireWalletSignature": True, "marketData": market_data, "message": "sign"},
            )
        }
    )

    result = asyncio.run(CreationGateway(backend.client()).submit(_draft(autoPublish=True)))

    assert isinstance(result, RequiresWalletSignature)
    assert result.market_data == market_data


def test_wallet_signature_without_market_data_falls_back_to_payload():
    backend = FakeBackend({"/markets": (400, {"success": False, "requireWalletSignature": True})})
    draft = _draft(autoPublish=True)

    result = asyncio.run(CreationGateway(backend.client()).submit(draft))

    assert isinstance(result, RequiresWalletSignature)
    assert result.market_data == draft.to_payload()


def test_backend_message_is_surfaced_on_rejection():
    backend = FakeBackend({"/markets": (422, {"success": False, "message": "标题已存在"})})

    result = asyncio.run(CreationGateway(backend.client()).submit(_draft()))

    assert isinstance(result, Rejected)
    assert result.reason == "标题已存在"
    assert result.status_code == 422
    assert result.kind is FailureKind.GATEWAY_REJECTED


def test_rejection_without_message_uses_generic_reason():
    backend = FakeBackend({"/markets": (500, {"success": False})})

    result = asyncio.run(CreationGateway(backend.client()).submit(_draft()))

    assert isinstance(result, Rejected)
    assert result.reason == messages.CREATE_FAILED


def test_unreachable_backend_is_rejected_without_retry():
    backend = FakeBackend({"/markets": [httpx.ConnectError("refused"), (200, {"success": True})]})

    result = asyncio.run(CreationGateway(backend.client()).submit(_draft()))

    assert isinstance(result, Rejected)
    assert result.reason == messages.BACKEND_UNREACHABLE
    assert result.status_code is None
    assert backend.paths() == ["/markets"]
