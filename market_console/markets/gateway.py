import logging
from dataclasses import dataclass, field
from typing import Any

from ..backend import BackendClient, BackendUnavailable
from . import messages
from .draft import MarketDraft
from .errors import FailureKind

logger = logging.getLogger(__name__)

CREATE_MARKET_PATH = "/markets"


@dataclass(frozen=True)
class Accepted:
    data: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


@dataclass(frozen=True)
class RequiresWalletSignature:
    market_data: dict[str, Any]
    message: str | None = None


@dataclass(frozen=True)
class Rejected:
    reason: str
    status_code: int | None = None
    kind: FailureKind = FailureKind.GATEWAY_REJECTED


GatewayResult = Accepted | RequiresWalletSignature | Rejected


class CreationGateway:
    """Client of the backend's single market-creation endpoint.

    Not idempotent on the backend side: a resubmitted draft may create a
    duplicate unless the backend honours ``Idempotency-Key``.
    """

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def submit(self, draft: MarketDraft) -> GatewayResult:
        payload = draft.to_payload()
        try:
            response = await self.backend.post(
                CREATE_MARKET_PATH,
                payload,
                headers={"Idempotency-Key": draft.idempotency_key},
            )
        except BackendUnavailable as exc:
            logger.warning("market_create_unreachable key=%s error=%s", draft.idempotency_key, exc)
            return Rejected(messages.BACKEND_UNREACHABLE)

        body = response.body
        if response.success:
            logger.info(
                "market_create_accepted key=%s status=%s auto_publish=%s",
                draft.idempotency_key,
                response.status_code,
                draft.auto_publish,
            )
            data = body.get("data")
            return Accepted(data if isinstance(data, dict) else {}, response.message)

        # The backend answers the wallet hand-off with a 400, so the flag wins over the status.
        if body.get("requireWalletSignature"):
            market_data = body.get("marketData")
            if not isinstance(market_data, dict) or not market_data:
                logger.warning("market_create_signature_without_market_data key=%s", draft.idempotency_key)
                market_data = payload
            logger.info("market_create_requires_wallet_signature key=%s", draft.idempotency_key)
            return RequiresWalletSignature(market_data, response.message)

        reason = response.message or messages.CREATE_FAILED
        logger.warning(
            "market_create_rejected key=%s status=%s message=%s",
            draft.idempotency_key,
            response.status_code,
            reason,
        )
        return Rejected(reason, response.status_code)
