from __future__ import annotations

import argparse
import asyncio
import json

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.logging import setup_logging
from app.schemas.markup import MarkupRuleOut
from app.services.hospitality_resolution import resolve_hospitalities_for_event
from app.services.markup_resolution import resolve_markups_for_event
from app.services.markup_rules import upsert_rule
from app.services.scope import EventAncestry


def _add_ancestry_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sport", required=True, help="sport_type of the event")
    parser.add_argument("--tournament", default=None, help="tournament_id of the event")
    parser.add_argument("--team", default=None, help="team_id of the event")
    parser.add_argument("--event", required=True, help="event_id")
    parser.add_argument("--ticket", action="append", required=True, help="ticket_id (repeatable)")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rondo pricing CLI")
    subparsers = parser.add_subparsers(dest="command")

    markup_parser = subparsers.add_parser("resolve-markup", help="Print the effective markup for tickets")
    _add_ancestry_arguments(markup_parser)

    hospitality_parser = subparsers.add_parser(
        "resolve-hospitalities",
        help="Print the hospitality services that apply to tickets",
    )
    _add_ancestry_arguments(hospitality_parser)

    upsert_parser = subparsers.add_parser("upsert-rule", help="Create or overwrite the markup rule at a scope")
    upsert_parser.add_argument("--sport", default=None)
    upsert_parser.add_argument("--tournament", default=None)
    upsert_parser.add_argument("--team", default=None)
    upsert_parser.add_argument("--event", default=None)
    upsert_parser.add_argument("--ticket", default=None)
    upsert_parser.add_argument("--type", dest="markup_type", choices=["fixed", "percentage"], default="fixed")
    upsert_parser.add_argument("--amount", required=True, help="USD amount or percentage")
    upsert_parser.add_argument("--actor-id", type=int, default=None, help="Admin user id recorded on the rule")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Defaults to APP_HOST")
    serve_parser.add_argument("--port", type=int, default=None, help="Defaults to APP_PORT")

    return parser


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=args.host or settings.app_host,
        port=args.port or settings.app_port,
        log_config=None,
    )
    return 0


def _event_ancestry(args: argparse.Namespace) -> EventAncestry:
    return EventAncestry(
        sport_type=args.sport,
        tournament_id=args.tournament,
        team_id=args.team,
        event_id=args.event,
    )


async def _run_resolve_markup(args: argparse.Namespace) -> int:
    ancestry = _event_ancestry(args)
    async with AsyncSessionLocal() as db:
        resolved = await resolve_markups_for_event(db, ancestry, args.ticket)
    payload = {ticket_id: result.to_dict() if result else None for ticket_id, result in resolved.items()}
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


async def _run_resolve_hospitalities(args: argparse.Namespace) -> int:
    ancestry = _event_ancestry(args)
    async with AsyncSessionLocal() as db:
        resolved = await resolve_hospitalities_for_event(db, ancestry, args.ticket)
    payload = {ticket_id: [record.to_dict() for record in records] for ticket_id, records in resolved.items()}
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


async def _run_upsert_rule(args: argparse.Namespace) -> int:
    scope_data = {
        "sport_type": args.sport,
        "tournament_id": args.tournament,
        "team_id": args.team,
        "event_id": args.event,
        "ticket_id": args.ticket,
    }
    async with AsyncSessionLocal() as db:
        rule = await upsert_rule(db, scope_data, args.markup_type, args.amount, args.actor_id)
        await db.commit()
    print(MarkupRuleOut.model_validate(rule).model_dump_json(indent=2))
    return 0


def main() -> int:
    parser = _build_arg_parser()
    args = parser.parse_args()
    setup_logging()
    if args.command == "serve":
        return _serve(args)
    try:
        if args.command == "resolve-markup":
            return asyncio.run(_run_resolve_markup(args))
        if args.command == "resolve-hospitalities":
            return asyncio.run(_run_resolve_hospitalities(args))
        if args.command == "upsert-rule":
            return asyncio.run(_run_upsert_rule(args))
    except ValueError as exc:
        parser.error(str(exc))

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
