import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from . import messages
from .draft import DraftInvalid, MarketType, iso_timestamp

FormState = Mapping[str, Any]


@dataclass(frozen=True)
class ComposedMarket:
    category: str
    title: str
    description: str
    option_a: str
    option_b: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Asset:
    id: str
    name: str
    symbol: str
    display_name: str


@dataclass(frozen=True)
class Timeframe:
    id: str
    name: str
    display: str


FINANCE_ASSETS: dict[str, tuple[Asset, ...]] = {
    "crypto": (
        Asset("bitcoin", "Bitcoin", "BTC", "比特币"),
        Asset("ethereum", "Ethereum", "ETH", "以太坊"),
        Asset("binancecoin", "BNB", "BNB", "币安币"),
    ),
    "stocks": (
        Asset("aapl", "Apple", "AAPL", "苹果"),
        Asset("goog", "Google", "GOOGL", "谷歌"),
        Asset("msft", "Microsoft", "MSFT", "微软"),
    ),
    "forex": (
        Asset("eurusd", "EUR/USD", "EURUSD", "欧元/美元"),
        Asset("gbpusd", "GBP/USD", "GBPUSD", "英镑/美元"),
        Asset("usdjpy", "USD/JPY", "USDJPY", "美元/日元"),
    ),
    "commodities": (
        Asset("gold", "Gold", "XAU", "黄金"),
        Asset("oil", "Oil", "CL", "石油"),
        Asset("silver", "Silver", "XAG", "白银"),
    ),
}

TIMEFRAMES: tuple[Timeframe, ...] = (
    Timeframe("1day", "24小时内", "24小时"),
    Timeframe("1week", "1周内", "1周"),
    Timeframe("1month", "1个月内", "1个月"),
    Timeframe("3months", "3个月内", "3个月"),
    Timeframe("1year", "1年内", "1年"),
)


class CategoryStrategy(ABC):
    """Category-specific part of draft building.

    The builder owns scheduling, option and timestamp checks; a strategy
    only knows which fields its form needs and how to word the market.
    """

    market_type: MarketType
    date_field = "resolutionDate"
    time_field = "resolutionTime"
    invalid_schedule_message = messages.INVALID_RESOLUTION_TIME

    @abstractmethod
    def check(self, form: FormState) -> list[DraftInvalid]:
        """Return every missing/invalid field, in the order the form reports them."""

    @abstractmethod
    def compose(self, form: FormState, resolution: datetime) -> ComposedMarket: ...

    def schedule(self, form: FormState) -> tuple[str, str]:
        return text(form, self.date_field), text(form, self.time_field)

    def _missing(self, form: FormState, required: list[tuple[str, str]]) -> list[DraftInvalid]:
        return [
            DraftInvalid("missing_field", message, name)
            for name, message in required
            if not text(form, name)
        ]


class SportsStrategy(CategoryStrategy):
    market_type = MarketType.SPORTS
    date_field = "matchDate"
    time_field = "matchTime"
    invalid_schedule_message = messages.INVALID_MATCH_TIME

    def check(self, form: FormState) -> list[DraftInvalid]:
        errors = self._missing(
            form,
            [
                ("league", messages.SELECT_LEAGUE),
                ("teamA", messages.SELECT_HOME_TEAM),
                ("teamB", messages.SELECT_AWAY_TEAM),
            ],
        )
        if text(form, "teamA") and text(form, "teamA") == text(form, "teamB"):
            errors.append(DraftInvalid("duplicate_options", messages.SAME_TEAMS, "teamB"))
        errors += self._missing(
            form,
            [
                ("matchDate", messages.SELECT_MATCH_DATE),
                ("matchTime", messages.SELECT_MATCH_TIME),
                ("oracle", messages.ENTER_ORACLE),
            ],
        )
        if _sport(form) == "football" and _handicap(form) is None:
            errors.append(DraftInvalid("missing_field", messages.SELECT_HANDICAP, "handicap"))
        return errors

    def compose(self, form: FormState, resolution: datetime) -> ComposedMarket:
        sport = _sport(form)
        team_a = _catalog_entry(form.get("teams"), text(form, "teamA"))
        team_b = _catalog_entry(form.get("teams"), text(form, "teamB"))
        league = _catalog_entry(form.get("leagues"), text(form, "league"))
        name_a = _display_name(team_a, text(form, "teamA"))
        name_b = _display_name(team_b, text(form, "teamB"))
        handicap = _handicap(form)

        if sport == "football":
            title = f"{name_a} vs {name_b} (让球{_signed(handicap)})"
            option_a = f"上盘（{name_a}让{_number(abs(handicap))}球获胜）"
            option_b = f"下盘（{name_b}受让{_number(abs(handicap))}球获胜）"
        else:
            title = f"{name_a} vs {name_b}"
            option_a = f"{name_a}获胜"
            option_b = f"{name_b}获胜"

        league_name = _display_name(league, text(form, "league"))
        description = f"{league_name}：{title}。预测获胜方。比赛时间：{zh_cn_datetime(resolution)}。"
        return ComposedMarket(
            category=sport,
            title=title,
            description=description,
            option_a=option_a,
            option_b=option_b,
            metadata={
                "sport": sport,
                "league": form.get("league"),
                "teamA": form.get("teamA"),
                "teamB": form.get("teamB"),
                "handicap": _plain(handicap),
                "matchDateTime": iso_timestamp(resolution),
                "teamLogos": {
                    "teamA": (team_a or {}).get("logoUrl"),
                    "teamB": (team_b or {}).get("logoUrl"),
                },
                "subcategory": sport,
            },
        )


class FinanceStrategy(CategoryStrategy):
    market_type = MarketType.FINANCE

    def check(self, form: FormState) -> list[DraftInvalid]:
        return self._missing(
            form,
            [
                ("asset", messages.SELECT_ASSET),
                ("priceTarget", messages.SELECT_PRICE_TARGET),
                ("timeframe", messages.SELECT_TIMEFRAME),
                ("resolutionDate", messages.SELECT_RESOLUTION_DATE),
                ("resolutionTime", messages.SELECT_RESOLUTION_TIME),
                ("oracle", messages.ENTER_ORACLE),
            ],
        )

    def compose(self, form: FormState, resolution: datetime) -> ComposedMarket:
        category = text(form, "category") or "crypto"
        asset = find_asset(category, text(form, "asset"))
        timeframe = next((t for t in TIMEFRAMES if t.id == text(form, "timeframe")), None)
        timeframe_display = timeframe.display if timeframe else text(form, "timeframe")
        target = text(form, "priceTarget")
        unit = "" if category == "forex" else "美元"

        return ComposedMarket(
            category=category,
            title=f"{asset.display_name}价格预测 - {timeframe_display}",
            description=(
                f"{asset.display_name}({asset.symbol})在{timeframe_display}"
                f"是否会达到{target}{unit}？"
            ),
            option_a=f"达到目标价格({target}{unit})",
            option_b=f"未达到目标价格({target}{unit})",
            metadata={
                "category": category,
                "asset": asset.id,
                "assetName": asset.display_name,
                "assetSymbol": asset.symbol,
                "priceTarget": target,
                "timeframe": text(form, "timeframe"),
                "resolutionDateTime": iso_timestamp(resolution),
            },
        )


class FreeformStrategy(CategoryStrategy):
    """Categories whose wording is typed in directly by the operator."""

    def __init__(self, market_type: MarketType) -> None:
        self.market_type = market_type

    def check(self, form: FormState) -> list[DraftInvalid]:
        return self._missing(
            form,
            [
                ("title", messages.ENTER_TITLE),
                ("description", messages.ENTER_DESCRIPTION),
                ("optionA", messages.ENTER_OPTION_A),
                ("optionB", messages.ENTER_OPTION_B),
                ("resolutionDate", messages.SELECT_RESOLUTION_DATE),
                ("resolutionTime", messages.SELECT_RESOLUTION_TIME),
                ("oracle", messages.ENTER_ORACLE),
            ],
        )

    def compose(self, form: FormState, resolution: datetime) -> ComposedMarket:
        category = self.market_type.value
        subcategory = text(form, "subcategory") or category
        metadata: dict[str, Any] = {
            "category": category,
            "subcategory": subcategory,
            "resolutionDateTime": iso_timestamp(resolution),
        }
        tags = form.get("tags")
        if isinstance(tags, (list, tuple)):
            metadata["tags"] = [str(tag).strip() for tag in tags if str(tag).strip()]
        return ComposedMarket(
            category=category,
            title=text(form, "title"),
            description=text(form, "description"),
            option_a=text(form, "optionA"),
            option_b=text(form, "optionB"),
            metadata=metadata,
        )


_STRATEGIES: dict[MarketType, CategoryStrategy] = {
    MarketType.SPORTS: SportsStrategy(),
    MarketType.FINANCE: FinanceStrategy(),
    MarketType.POLITICS: FreeformStrategy(MarketType.POLITICS),
    MarketType.TECHNOLOGY: FreeformStrategy(MarketType.TECHNOLOGY),
    MarketType.ENTERTAINMENT: FreeformStrategy(MarketType.ENTERTAINMENT),
    MarketType.OTHER: FreeformStrategy(MarketType.OTHER),
}


def strategy_for(market_type: MarketType | str) -> CategoryStrategy:
    return _STRATEGIES[MarketType(market_type)]


def find_asset(category: str, asset_id: str) -> Asset:
    for asset in FINANCE_ASSETS.get(category, ()):
        if asset.id == asset_id:
            return asset
    return Asset(asset_id, asset_id, asset_id.upper(), asset_id)


def text(form: FormState, key: str) -> str:
    value = form.get(key)
    if value is None or isinstance(value, (dict, list, tuple)):
        return ""
    return str(value).strip()


def zh_cn_datetime(value: datetime) -> str:
    return f"{value.year}/{value.month}/{value.day} {value:%H:%M:%S}"


def _sport(form: FormState) -> str:
    return text(form, "sport") or "football"


def _handicap(form: FormState) -> float | None:
    raw = form.get("handicap")
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _plain(value: float | None) -> int | float | None:
    if value is None:
        return None
    return int(value) if value.is_integer() else value


def _signed(value: float) -> str:
    return f"+{_number(value)}" if value > 0 else _number(value)


def _catalog_entry(catalog: Any, entry_id: str) -> dict[str, Any] | None:
    if not isinstance(catalog, (list, tuple)) or not entry_id:
        return None
    for entry in catalog:
        if isinstance(entry, dict) and str(entry.get("id")) == entry_id:
            return entry
    return None


def _display_name(entry: dict[str, Any] | None, fallback: str) -> str:
    if entry:
        name = entry.get("displayName") or entry.get("name")
        if name:
            return str(name)
    return fallback
