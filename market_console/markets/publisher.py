import logging
from dataclasses import dataclass, field
from typing import Any

from ..backend import BackendUnavailable
from ..session import ConsoleSession
from ..wallet.provider import WalletProvider, WalletRpcError
from . import messages
from .draft import TransactionHandshake
from .errors import FailureKind
from .notices import LOADING, SUCCESS, WARNING, Notice, Notify, discard

logger = logging.getLogger(__name__)

PREPARE_CREATE_PATH = "/wallet-markets/prepare-create"
SUBMIT_CREATE_PATH = "/wallet-markets/submit-create"

_SIGN_NOTICE_KEY = "wallet-sign"
_CONFIRM_NOTICE_KEY = "tx-confirm"


@dataclass(frozen=True)
class PublishedReceipt:
    tx_hash: str
    signer_address: str
    market_data: dict[str, Any]
    data: dict[str, Any] = field(default_factory=dict)
    warning: str | None = None


@dataclass(frozen=True)
class WalletFailure:
    kind: FailureKind
    message: str
    stage: str
    tx_hash: str | None = None


PublishResult = PublishedReceipt | WalletFailure


async def discover_account(wallet: WalletProvider | None, stage: str = "account") -> str | WalletFailure:
    """Read the wallet's first authorized account, mirroring ``eth_accounts``."""
    if wallet is None:
        return WalletFailure(FailureKind.WALLET_UNAVAILABLE, messages.WALLET_MISSING, stage)
    try:
        accounts = await wallet.accounts()
    except WalletRpcError as exc:
        logger.warning("wallet_accounts_failed stage=%s code=%s message=%s", stage, exc.code, exc.message)
        return WalletFailure(FailureKind.WALLET_UNAVAILABLE, messages.WALLET_INFO_UNAVAILABLE, stage)
    except Exception as exc:
        logger.warning("wallet_accounts_failed stage=%s error=%r", stage, exc)
        return WalletFailure(FailureKind.WALLET_UNAVAILABLE, messages.WALLET_INFO_UNAVAILABLE, stage)
    if not accounts:
        return WalletFailure(FailureKind.WALLET_UNAVAILABLE, messages.WALLET_NOT_CONNECTED, stage)
    return accounts[0]


def classify_wallet_error(exc: WalletRpcError) -> tuple[FailureKind, str]:
    if exc.user_rejected:
        return FailureKind.WALLET_USER_CANCELLED, messages.USER_CANCELLED
    if "insufficient funds" in (exc.message or "").lower():
        return FailureKind.WALLET_PROVIDER_ERROR, messages.INSUFFICIENT_FUNDS
    return FailureKind.WALLET_PROVIDER_ERROR, exc.message or messages.WALLET_SIGN_FAILED


class WalletPublisher:
    """Runs prepare -> sign -> submit for a market that needs a wallet signature.

    Each step starts only after the previous one succeeded and none is
    retried; a failed run is abandoned together with its handshake and the
    caller starts over from a new draft.
    """

    def __init__(self, session: ConsoleSession, notify: Notify | None = None) -> None:
        self.session = session
        self._notify = notify or discard

    async def publish(self, prepared_market: dict[str, Any]) -> PublishResult:
        signer = await discover_account(self.session.wallet, stage="prepare")
        if isinstance(signer, WalletFailure):
            return signer
        captured = self.session.captured_account
        if captured and captured.lower() != signer.lower():
            logger.warning("wallet_account_changed captured=%s current=%s", captured, signer)
            return WalletFailure(FailureKind.WALLET_UNAVAILABLE, messages.WALLET_ACCOUNT_CHANGED, "prepare")

        handshake = TransactionHandshake(market_data=prepared_market, signer_address=signer)

        failure = await self._prepare(handshake)
        if failure is not None:
            return failure

        failure = await self._sign(handshake)
        if failure is not None:
            return failure

        return await self._submit(handshake)

    async def _prepare(self, handshake: TransactionHandshake) -> WalletFailure | None:
        logger.info("wallet_publish_prepare signer=%s", handshake.signer_address)
        try:
            response = await self.session.backend.post(
                PREPARE_CREATE_PATH,
                {"marketData": handshake.market_data, "signerAddress": handshake.signer_address},
            )
        except BackendUnavailable as exc:
            logger.warning("wallet_publish_prepare_unreachable error=%s", exc)
            return WalletFailure(FailureKind.GATEWAY_REJECTED, messages.PREPARE_FAILED, "prepare")

        transaction_data = response.body.get("transactionData")
        if not response.success or not isinstance(transaction_data, dict) or not transaction_data:
            reason = (response.message if not response.success else None) or messages.PREPARE_FAILED
            logger.warning("wallet_publish_prepare_rejected status=%s message=%s", response.status_code, reason)
            return WalletFailure(FailureKind.GATEWAY_REJECTED, reason, "prepare")

        handshake.transaction_data = transaction_data
        return None

    async def _sign(self, handshake: TransactionHandshake) -> WalletFailure | None:
        self._notify(Notice(LOADING, messages.CONFIRM_IN_WALLET, _SIGN_NOTICE_KEY))
        try:
            tx_hash = await self.session.wallet.send_transaction(dict(handshake.transaction_data))
        except WalletRpcError as exc:
            kind, message = classify_wallet_error(exc)
            if kind is FailureKind.WALLET_USER_CANCELLED:
                logger.info("wallet_publish_cancelled signer=%s", handshake.signer_address)
            else:
                logger.warning("wallet_publish_sign_failed code=%s message=%s", exc.code, exc.message)
            return WalletFailure(kind, message, "sign")
        except Exception as exc:
            logger.warning("wallet_publish_sign_failed error=%r", exc)
            return WalletFailure(FailureKind.WALLET_PROVIDER_ERROR, str(exc) or messages.WALLET_SIGN_FAILED, "sign")

        if not tx_hash:
            logger.warning("wallet_publish_sign_empty_hash signer=%s", handshake.signer_address)
            return WalletFailure(FailureKind.WALLET_PROVIDER_ERROR, messages.WALLET_SIGN_FAILED, "sign")

        handshake.tx_hash = tx_hash
        logger.info("wallet_publish_broadcast tx_hash=%s signer=%s", tx_hash, handshake.signer_address)
        self._notify(Notice(SUCCESS, messages.TRANSACTION_BROADCAST, _SIGN_NOTICE_KEY))
        return None

    async def _submit(self, handshake: TransactionHandshake) -> PublishResult:
        self._notify(Notice(LOADING, messages.AWAITING_CONFIRMATION, _CONFIRM_NOTICE_KEY))
        payload = {
            "txHash": handshake.tx_hash,
            "marketData": handshake.market_data,
            "signerAddress": handshake.signer_address,
        }
        try:
            response = await self.session.backend.post(SUBMIT_CREATE_PATH, payload)
        except BackendUnavailable as exc:
            return self._reconciliation_gap(handshake, messages.SUBMIT_FAILED, str(exc))

        if not response.success:
            reason = response.message or messages.SUBMIT_FAILED
            return self._reconciliation_gap(handshake, reason, f"status={response.status_code}")

        warning = response.body.get("warning")
        if warning:
            logger.warning("wallet_publish_backend_warning tx_hash=%s warning=%s", handshake.tx_hash, warning)
            self._notify(Notice(WARNING, str(warning), _CONFIRM_NOTICE_KEY))

        data = {key: value for key, value in response.body.items() if key not in {"success", "message", "warning"}}
        logger.info("wallet_publish_reconciled tx_hash=%s", handshake.tx_hash)
        return PublishedReceipt(
            tx_hash=handshake.tx_hash,
            signer_address=handshake.signer_address,
            market_data=handshake.market_data,
            data=data,
            warning=str(warning) if warning else None,
        )

    def _reconciliation_gap(self, handshake: TransactionHandshake, reason: str, detail: str) -> WalletFailure:
        # The transaction may already be on chain; nothing here rolls it back or re-submits it.
        logger.error(
            "wallet_publish_reconciliation_gap tx_hash=%s signer=%s reason=%s detail=%s",
            handshake.tx_hash,
            handshake.signer_address,
            reason,
            detail,
        )
        return WalletFailure(FailureKind.RECONCILIATION_REJECTED, reason, "submit", handshake.tx_hash)
