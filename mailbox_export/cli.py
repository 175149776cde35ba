"""Command line entry point for exporting and viewing mailbox items."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import requests

from .config import ExportOptions, Settings
from .errors import ConfigError, ExportError
from .exporters import AttachmentExporter, MessageExporter, MessageViewer
from .graph_client import GraphClient
from .ledger import ExportLedger
from .logging_format import configure_logging

logger = logging.getLogger("mailbox_export")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailbox-export",
        description="Export individual Microsoft 365 messages and attachments.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    message = sub.add_parser("message", help="Save one or more messages as .eml or .txt")
    message.add_argument("--owner", required=True, help="Mailbox owner (user principal name)")
    source = message.add_mutually_exclusive_group(required=True)
    source.add_argument("--id", dest="internet_message_id", help="Internet Message ID")
    source.add_argument("--input-file", type=Path, help="File with one Internet Message ID per line")
    message.add_argument("--output", choices=["eml", "txt"], default="eml", help="Output format")
    message.add_argument("--output-dir", type=Path, help="Existing directory to write into")
    message.add_argument("--attachments", action="store_true", help="Also save attachments")

    attachments = sub.add_parser("attachments", help="Save the attachments of one message")
    attachments.add_argument("--owner", required=True, help="Mailbox owner (user principal name)")
    attachments.add_argument("--id", dest="internet_message_id", required=True)
    attachments.add_argument("--output-dir", type=Path, help="Existing directory to write into")

    show = sub.add_parser("show", help="Print one message to the console")
    show.add_argument("--owner", required=True, help="Mailbox owner (user principal name)")
    show.add_argument("--id", dest="internet_message_id", required=True)

    history = sub.add_parser("ledger", help="List files already exported for one message")
    history.add_argument("--id", dest="internet_message_id", required=True)
    return parser


def show_ledger(ledger: ExportLedger | None, internet_message_id: str) -> int:
    if ledger is None:
        raise ConfigError("EXPORT_LEDGER_DB is not set; no export ledger to read")
    rows = ledger.entries_for(internet_message_id)
    if not rows:
        logger.warning("No exports recorded for %s", internet_message_id)
    for row in rows:
        print(f"{row['exported_at']}  {row['checksum']}  {row['size']:>10}  {row['path']}")
    return 0


def run(args: argparse.Namespace, client, ledger: ExportLedger | None = None) -> int:
    wiring = {"logger": logger, "echo": print, "ledger": ledger}

    if args.command == "message":
        options = ExportOptions(
            output_format=args.output,
            output_dir=args.output_dir,
            include_attachments=args.attachments,
        )
        summary = MessageExporter(client, options, **wiring).export(
            args.owner,
            internet_message_id=args.internet_message_id,
            input_file=args.input_file,
        )
        logger.info(
            "Run complete: written=%s not_collected=%s attachments_not_collected=%s",
            len(summary.written),
            len(summary.not_collected),
            len(summary.attachments_not_collected),
        )
    elif args.command == "attachments":
        options = ExportOptions(output_dir=args.output_dir)
        AttachmentExporter(client, options, **wiring).export(args.owner, args.internet_message_id)
    elif args.command == "ledger":
        return show_ledger(ledger, args.internet_message_id)
    else:
        MessageViewer(client, **wiring).show(args.owner, args.internet_message_id)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)

    ledger = ExportLedger(settings.export_ledger_db) if settings.export_ledger_db else None
    try:
        client = None if args.command == "ledger" else GraphClient(settings)
        return run(args, client, ledger)
    except ExportError as exc:
        logger.error("%s failed (%s): %s", args.command, exc.kind.value, exc)
        return 1
    except requests.RequestException as exc:
        logger.error("%s failed (graph request): %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
