"""Command-line utility for the Listmonk SDK.

Runs a single read-only query against a Listmonk instance and prints the
result as JSON. Connection settings come from ``--url``, ``--username``
and ``--password`` and fall back to the ``LISTMONK_*`` environment
variables, which may also be placed in a ``.env`` file in the current
directory.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from .client import ListmonkClient
from .config import load_dotenv_for_sdk
from .exceptions import ListmonkError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listmonk", description="Query a Listmonk instance."
    )
    parser.add_argument("--url", help="Instance URL (default: $LISTMONK_URL)")
    parser.add_argument("--username", help="API user (default: $LISTMONK_USERNAME)")
    parser.add_argument("--password", help="API password (default: $LISTMONK_PASSWORD)")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("health", help="Check whether the instance is healthy")
    commands.add_parser("lists", help="Print all mailing lists")
    commands.add_parser("campaigns", help="Print all campaigns")
    commands.add_parser("templates", help="Print all templates")

    subs = commands.add_parser("subscribers", help="Print matching subscribers")
    subs.add_argument("--query", help="Listmonk SQL filter expression")
    subs.add_argument("--list-id", type=int, help="Only members of this list")
    return parser


async def _query(client: ListmonkClient, args: argparse.Namespace):
    if args.command == "health":
        return {"healthy": await client.healthy()}
    if args.command == "lists":
        records = await client.get_lists()
    elif args.command == "campaigns":
        records = await client.get_campaigns()
    elif args.command == "templates":
        records = await client.get_templates()
    else:
        records = await client.get_subscribers(query=args.query, list_id=args.list_id)
    return [record.to_api() for record in records]


async def main(args: argparse.Namespace) -> int:
    """Run the parsed command.

    Exit Codes
    ----------
    0 : Success
    1 : Configuration error, unreachable instance or API error
    """
    config = {"url": args.url, "username": args.username, "password": args.password}

    try:
        async with await ListmonkClient.start(config) as client:
            output = await _query(client, args)
    except ListmonkError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    print(json.dumps(output, indent=2, default=str))
    if args.command == "health" and not output["healthy"]:
        return 1
    return 0


def cli_main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the listmonk command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    load_dotenv_for_sdk()

    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli_main()
