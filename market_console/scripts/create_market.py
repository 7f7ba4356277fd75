import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from market_console.backend import BackendClient
from market_console.core.logging_config import configure_logging
from market_console.markets.builder import MarketDraftBuilder
from market_console.markets.draft import MarketType
from market_console.markets.notices import Notice
from market_console.markets.orchestrator import CreateAction, CreationOrchestrator
from market_console.resources.client import CatalogUnavailable, ResourceCatalogClient, as_form_catalog
from market_console.session import ConsoleSession
from market_console.settings import settings
from market_console.wallet.web3_provider import Web3WalletProvider

logger = logging.getLogger(__name__)


def _print_notice(notice: Notice) -> None:
    print(f"[{notice.level}] {notice.message}")


def _ask_confirmation(tx: dict[str, Any]) -> bool:
    print(json.dumps({k: v for k, v in tx.items() if k != "data"}, indent=2, default=str))
    answer = input("Sign and broadcast this transaction? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


async def _confirm_transaction(tx: dict[str, Any]) -> bool:
    return await asyncio.to_thread(_ask_confirmation, tx)


def _build_wallet(auto_approve: bool) -> Web3WalletProvider | None:
    if not settings.WALLET_RPC_URL:
        return None
    approve = None if auto_approve else _confirm_transaction
    return Web3WalletProvider(approve=approve)


def _load_form(path: str) -> dict[str, Any]:
    form = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(form, dict):
        raise SystemExit(f"{path}: expected a JSON object")
    return form


async def _attach_sports_catalogs(form: dict[str, Any], catalog: ResourceCatalogClient) -> None:
    sport = str(form.get("sport") or "football")
    if "leagues" not in form:
        form["leagues"] = as_form_catalog(await catalog.leagues(sport))
    if "teams" not in form and form.get("league"):
        form["teams"] = as_form_catalog(await catalog.teams(sport, str(form["league"])))


async def create(args: argparse.Namespace) -> int:
    form = _load_form(args.form)
    market_type = MarketType(args.type)
    backend = BackendClient(token=args.token)
    if market_type is MarketType.SPORTS:
        try:
            await _attach_sports_catalogs(form, ResourceCatalogClient(backend))
        except CatalogUnavailable as exc:
            # Names fall back to ids; creation itself can still proceed.
            logger.warning("sports_catalog_unavailable error=%s", exc)

    session = ConsoleSession(backend=backend, wallet=_build_wallet(args.yes))
    orchestrator = CreationOrchestrator(
        MarketDraftBuilder(market_type),
        session,
        notify=_print_notice,
    )
    action = CreateAction.CREATE_AND_PUBLISH if args.publish else CreateAction.SAVE_DRAFT
    outcome = await orchestrator.run(form, action)
    if outcome.receipt is not None:
        print(f"tx_hash={outcome.receipt.tx_hash}")
    if outcome.ok and outcome.navigate_to:
        print(f"next: {outcome.navigate_to}")
    return 0 if outcome.ok else 1


async def catalog(args: argparse.Namespace) -> int:
    client = ResourceCatalogClient(BackendClient(token=args.token))
    try:
        if args.league:
            entries = as_form_catalog(await client.teams(args.sport, args.league))
        else:
            entries = as_form_catalog(await client.leagues(args.sport))
        handicaps = await client.handicaps(args.sport)
    except CatalogUnavailable as exc:
        print(f"catalog unavailable: {exc}", file=sys.stderr)
        return 1
    print(json.dumps({"entries": entries, "handicaps": handicaps}, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create prediction markets through the admin backend")
    parser.add_argument("--token", default=None, help="Bearer token (defaults to ADMIN_TOKEN)")
    sub = parser.add_subparsers(dest="command", required=True)

    create_parser = sub.add_parser("create", help="Build, submit and optionally publish a market")
    create_parser.add_argument("--type", required=True, choices=[t.value for t in MarketType])
    create_parser.add_argument("--form", required=True, help="Path to a JSON file with the form fields")
    create_parser.add_argument("--publish", action="store_true", help="Create and publish on chain")
    create_parser.add_argument("--yes", action="store_true", help="Sign without asking for confirmation")
    create_parser.set_defaults(handler=create)

    catalog_parser = sub.add_parser("catalog", help="List leagues (or teams of a league) and handicaps")
    catalog_parser.add_argument("--sport", default="football", choices=["football", "basketball"])
    catalog_parser.add_argument("--league", default=None)
    catalog_parser.set_defaults(handler=catalog)
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return asyncio.run(args.handler(args))


if __name__ == "__main__":
    sys.exit(main())
