"""Command line access to the provider.

    njalladns list example.com
    njalladns set example.com --type A --name www --value 192.0.2.1 --ttl 3600
    njalladns delete example.com --type TXT --name _acme-challenge
"""

import argparse

from loguru import logger

from njalladns.app import configure_logging
from njalladns.app.codec import NjallaRecord, from_provider, to_provider
from njalladns.app.context import Context
from njalladns.app.exceptions import NjallaError
from njalladns.app.provider import Provider
from njalladns.app.utils.names import normalize_zone
from njalladns.config import config

BATCH_COMMANDS = (
    ("append", "Create a record"),
    ("set", "Create a record or update the one with the same name and type"),
    ("delete", "Delete a record"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="njalladns", description="Manage DNS records hosted at Njalla"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List all records in a zone")
    list_cmd.add_argument("zone")

    for command, help_text in BATCH_COMMANDS:
        cmd = commands.add_parser(command, help=help_text)
        cmd.add_argument("zone")
        cmd.add_argument("--type", dest="rtype", required=True)
        cmd.add_argument("--name", required=True)
        cmd.add_argument(
            "--value", default="", help="address, target, text or SvcParams"
        )
        cmd.add_argument("--ttl", type=int, default=0, help="seconds")
        cmd.add_argument("--prio", type=int, default=0)
        cmd.add_argument("--weight", type=int, default=0)
        cmd.add_argument("--port", type=int, default=0)
        cmd.add_argument("--target", default="")
        cmd.add_argument("--id", dest="identity", default="", help="Njalla record ID")
    return parser


def record_from_args(args: argparse.Namespace):
    """Build a record variant from command line fields via the codec."""
    rtype = args.rtype.upper()
    njalla = NjallaRecord(
        id=args.identity,
        domain=normalize_zone(args.zone),
        type=rtype,
        name=args.name,
        ttl=args.ttl,
        prio=args.prio,
        weight=args.weight,
        port=args.port,
        target=args.target,
    )
    if rtype == "HTTPS":
        njalla.value = args.value
    else:
        njalla.content = args.value
    return from_provider(njalla)


def format_record(record, zone: str) -> str:
    njalla = to_provider(record, normalize_zone(zone))
    if njalla.type == "MX":
        data = f"{njalla.prio} {njalla.content}"
    elif njalla.type == "SRV":
        data = f"{njalla.prio} {njalla.weight} {njalla.port} {njalla.content}"
    elif njalla.type in ("HTTPS", "SVCB"):
        data = f"{njalla.prio} {njalla.target} {njalla.value or njalla.content}".rstrip()
    else:
        data = njalla.content
    return f"{njalla.id or '-'}\t{njalla.name}\t{njalla.ttl}\t{njalla.type}\t{data}"


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        provider = Provider.from_config(config)
        ctx = Context.background()
        if args.command == "list":
            records = provider.list_records(ctx, args.zone)
        else:
            operations = {
                "append": provider.append_records,
                "set": provider.set_records,
                "delete": provider.delete_records,
            }
            records = operations[args.command](ctx, args.zone, [record_from_args(args)])
    except NjallaError as exc:
        logger.error(f"{args.command} failed: {exc}")
        return 1

    for record in records:
        print(format_record(record, args.zone))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
