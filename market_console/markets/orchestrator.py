import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..session import ConsoleSession
from ..settings import settings
from . import messages
from .builder import MarketDraftBuilder
from .categories import FormState
from .draft import DraftInvalid, MarketDraft
from .errors import FailureKind
from .gateway import Accepted, CreationGateway, Rejected, RequiresWalletSignature
from .notices import ERROR, SUCCESS, Notice, Notify, discard
from .publisher import PublishedReceipt, WalletFailure, WalletPublisher, discover_account

logger = logging.getLogger(__name__)

Navigate = Callable[[str], Any]
Scheduler = Callable[[float, Callable[[], Any]], Any]


class CreationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    AWAITING_WALLET = "awaiting_wallet"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


class CreateAction(str, Enum):
    SAVE_DRAFT = "save_draft"
    CREATE_AND_PUBLISH = "create_and_publish"


@dataclass
class CreationOutcome:
    state: CreationState
    message: str
    kind: FailureKind | None = None
    draft: MarketDraft | None = None
    receipt: PublishedReceipt | None = None
    navigate_to: str | None = None
    history: list[CreationState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is CreationState.DONE


def _call_later(delay: float, callback: Callable[[], Any]) -> Any:
    return asyncio.get_running_loop().call_later(delay, callback)


class CreationOrchestrator:
    """Sequences draft building, backend creation and, when required, wallet publication.

    One ``run`` is one attempt. Nothing carries over between attempts: each
    builds a new draft and a new session view, and a failure is final for
    the attempt that produced it.
    """

    def __init__(
        self,
        builder: MarketDraftBuilder,
        session: ConsoleSession,
        *,
        notify: Notify | None = None,
        navigate: Navigate | None = None,
        schedule: Scheduler | None = None,
        navigate_delay: float | None = None,
    ) -> None:
        self.builder = builder
        self.session = session
        self._notify = notify or discard
        self._navigate = navigate
        self._schedule = schedule or _call_later
        self._navigate_delay = settings.NAVIGATE_DELAY_SECONDS if navigate_delay is None else navigate_delay
        self.state = CreationState.IDLE

    async def run(self, form: FormState, action: CreateAction = CreateAction.SAVE_DRAFT) -> CreationOutcome:
        history = [CreationState.IDLE]
        session = self.session.fresh()
        auto_publish = action is CreateAction.CREATE_AND_PUBLISH

        def advance(state: CreationState) -> None:
            history.append(state)
            self.state = state

        advance(CreationState.VALIDATING)
        draft = self.builder.build(form, auto_publish=auto_publish)
        if isinstance(draft, DraftInvalid):
            logger.info("market_create_invalid code=%s field=%s", draft.code, draft.field)
            return self._fail(history, FailureKind.VALIDATION, draft.message)

        if auto_publish:
            account = await discover_account(session.wallet, stage="preflight")
            if isinstance(account, WalletFailure):
                logger.info("market_create_wallet_preflight_failed message=%s", account.message)
                return self._fail(history, account.kind, account.message, draft=draft)
            session.captured_account = account

        advance(CreationState.SUBMITTING)
        gateway = CreationGateway(session.backend)
        result = await gateway.submit(draft)

        if isinstance(result, Accepted):
            message = messages.CREATED_AND_PUBLISHED if auto_publish else messages.CREATED
            return self._succeed(history, message, draft)

        if isinstance(result, Rejected):
            return self._fail(history, result.kind, result.reason, draft=draft)

        if not isinstance(result, RequiresWalletSignature):
            raise TypeError(f"unexpected gateway result {result!r}")

        advance(CreationState.AWAITING_WALLET)
        publisher = WalletPublisher(session, notify=self._notify)
        advance(CreationState.PUBLISHING)
        published = await publisher.publish(result.market_data)
        if isinstance(published, WalletFailure):
            return self._fail(history, published.kind, published.message, draft=draft)
        return self._succeed(history, messages.CREATED_AND_PUBLISHED, draft, receipt=published)

    def _succeed(
        self,
        history: list[CreationState],
        message: str,
        draft: MarketDraft,
        receipt: PublishedReceipt | None = None,
    ) -> CreationOutcome:
        history.append(CreationState.DONE)
        self.state = CreationState.DONE
        target = settings.MARKETS_LIST_PATH
        logger.info(
            "market_create_done type=%s key=%s tx_hash=%s",
            draft.type.value,
            draft.idempotency_key,
            receipt.tx_hash if receipt else None,
        )
        self._notify(Notice(SUCCESS, message))
        if self._navigate is not None:
            navigate = self._navigate
            self._schedule(self._navigate_delay, lambda: navigate(target))
        return CreationOutcome(
            state=CreationState.DONE,
            message=message,
            draft=draft,
            receipt=receipt,
            navigate_to=target,
            history=history,
        )

    def _fail(
        self,
        history: list[CreationState],
        kind: FailureKind,
        message: str,
        draft: MarketDraft | None = None,
    ) -> CreationOutcome:
        history.append(CreationState.FAILED)
        self.state = CreationState.FAILED
        if kind is FailureKind.RECONCILIATION_REJECTED:
            logger.error("market_create_failed kind=%s message=%s", kind.value, message)
        else:
            logger.info("market_create_failed kind=%s message=%s", kind.value, message)
        self._notify(Notice(ERROR, message))
        if kind is FailureKind.VALIDATION:
            # Nothing left the console; the form is ready for the next attempt.
            self.state = CreationState.IDLE
        return CreationOutcome(
            state=CreationState.FAILED,
            message=message,
            kind=kind,
            draft=draft,
            history=history,
        )
