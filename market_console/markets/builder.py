import logging
from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from ..settings import settings
from . import messages
from .categories import CategoryStrategy, FormState, strategy_for
from .draft import DraftInvalid, MarketDraft, MarketType

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MarketDraftBuilder:
    def __init__(
        self,
        strategy: CategoryStrategy | MarketType | str,
        *,
        clock: Clock | None = None,
        tz: str | None = None,
    ) -> None:
        if not isinstance(strategy, CategoryStrategy):
            strategy = strategy_for(strategy)
        self.strategy = strategy
        self._clock = clock or _utc_now
        self._tz = ZoneInfo(tz or settings.MARKET_TIMEZONE)

    @property
    def market_type(self) -> MarketType:
        return self.strategy.market_type

    def validate(self, form: FormState) -> list[DraftInvalid]:
        """Every field-level problem in form order; ``build`` reports only the first."""
        return self.strategy.check(form)

    def build(self, form: FormState, *, auto_publish: bool | None = None) -> MarketDraft | DraftInvalid:
        errors = self.validate(form)
        if errors:
            return errors[0]

        date_text, time_text = self.strategy.schedule(form)
        resolution = parse_schedule(date_text, time_text, self._tz)
        if resolution is None:
            return DraftInvalid("invalid_schedule", self.strategy.invalid_schedule_message, self.strategy.time_field)
        if resolution <= self._clock():
            return DraftInvalid("resolution_in_past", messages.RESOLUTION_IN_PAST, self.strategy.time_field)

        composed = self.strategy.compose(form, resolution)
        if composed.option_a.strip() == composed.option_b.strip():
            return DraftInvalid("duplicate_options", messages.SAME_OPTIONS, "optionB")

        if auto_publish is None:
            auto_publish = bool(form.get("autoPublish"))
        try:
            return MarketDraft(
                type=self.market_type,
                category=composed.category,
                title=composed.title,
                description=composed.description,
                option_a=composed.option_a,
                option_b=composed.option_b,
                resolution_time=resolution,
                oracle=str(form.get("oracle")).strip(),
                metadata=composed.metadata,
                auto_publish=auto_publish,
            )
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            logger.warning("market_draft_rejected type=%s field=%s error=%s", self.market_type.value, field, first.get("msg"))
            return DraftInvalid("missing_field", f"{field}: {first.get('msg')}", field or None)


def parse_schedule(date_text: str, time_text: str, tz: ZoneInfo) -> datetime | None:
    """Combine a form's date and time inputs into one aware instant.

    Naive inputs are read in the console's market timezone.
    """
    if not date_text or not time_text:
        return None
    try:
        value = datetime.fromisoformat(f"{date_text.strip()}T{time_text.strip()}")
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value
