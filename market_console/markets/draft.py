from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class MarketType(str, Enum):
    SPORTS = "sports"
    FINANCE = "finance"
    POLITICS = "politics"
    TECHNOLOGY = "technology"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"


class MarketDraft(BaseModel):
    """Validated description of a market awaiting creation.

    Frozen once built: a rejected submission is retried with a freshly built
    draft, never a patched one. ``idempotency_key`` is minted per draft so a
    backend able to deduplicate can recognise a resubmission.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: MarketType
    category: str
    title: str
    description: str
    option_a: str
    option_b: str
    resolution_time: datetime
    oracle: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    auto_publish: bool = False
    idempotency_key: str = Field(default_factory=lambda: uuid4().hex)

    @field_validator("category", "title", "description", "option_a", "option_b", "oracle")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("resolution_time")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("resolution_time must be timezone-aware")
        return value

    @model_validator(mode="after")
    def _distinct_options(self) -> "MarketDraft":
        if self.option_a == self.option_b:
            raise ValueError("option_a and option_b must differ")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, mode="json")
        payload["resolutionTime"] = iso_timestamp(self.resolution_time)
        return payload


@dataclass(frozen=True)
class DraftInvalid:
    code: str
    message: str
    field: str | None = None


@dataclass
class TransactionHandshake:
    """State of one prepare/sign/submit run. Never persisted or reused."""

    market_data: dict[str, Any]
    signer_address: str
    transaction_data: dict[str, Any] | None = None
    tx_hash: str | None = None


def iso_timestamp(value: datetime) -> str:
    """Millisecond UTC timestamp with a ``Z`` suffix, as the backend expects."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
