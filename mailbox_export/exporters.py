"""Export single messages, batches of messages and attachments to disk."""

from __future__ import annotations

import binascii
import json
import logging
from pathlib import Path
from typing import Any, Callable, Protocol

import requests

from .config import DEFAULT_OUTPUT_DIR, ExportOptions
from .errors import AuthError, ConfigError, ExportError, ExportIOError, MessageLookupError
from .ledger import ExportLedger
from .models import AttachmentRecord, ExportSummary, MessageRecord
from .utils import decode_content, received_stamp, sanitize_name, sha256_hex

MESSAGE_SCOPES = ("Mail.Read", "Mail.ReadBasic")
ATTACHMENT_SCOPES = ("Mail.Read", "Mail.ReadBasic", "Mail.ReadBasic.All")
VIEWER_SCOPES = ATTACHMENT_SCOPES + ("Mail.ReadWrite",)

# Failures that make a single message uncollectable without aborting a batch.
ITEM_FAILURES = (ExportError, requests.RequestException)

Echo = Callable[[str], None]


class MailSource(Protocol):
    """What the exporters need from a Graph client."""

    def find_message(self, owner: str, internet_message_id: str) -> MessageRecord: ...

    def get_message(self, owner: str, message_id: str) -> dict[str, Any]: ...

    def get_message_content(self, owner: str, message_id: str) -> bytes: ...

    def list_attachments(self, owner: str, message_id: str) -> list[AttachmentRecord]: ...


def resolve_output_dir(output_dir: Path | None) -> Path:
    """Return the directory exports go to.

    The default directory is created on demand; a caller-supplied one must
    already exist.
    """
    if output_dir is None:
        DEFAULT_OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_OUTPUT_DIR
    path = Path(output_dir)
    if not path.is_dir():
        raise ConfigError(f"Custom output directory invalid: {path}")
    return path


def read_identifiers(input_file: Path) -> list[str]:
    """Read one Internet Message ID per line, skipping blank lines."""
    try:
        lines = Path(input_file).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read input file {input_file}: {exc}") from exc
    return [line.strip() for line in lines if line.strip()]


def message_filename(message: MessageRecord, extension: str) -> str:
    return f"{received_stamp(message.received)}-{sanitize_name(message.subject)}.{extension}"


def attachment_filename(message: MessageRecord, attachment: AttachmentRecord) -> str:
    return (
        f"{received_stamp(message.received)}-{sanitize_name(message.subject)}"
        f"-{sanitize_name(attachment.name)}"
    )


def scope_hint(scopes: tuple[str, ...]) -> str:
    return f"Authenticate to Microsoft Graph with the scopes {', '.join(scopes)} and retry."


class _MailboxTask:
    """Shared wiring: collaborator, options, logger, console echo and ledger."""

    def __init__(
        self,
        client: MailSource,
        options: ExportOptions | None = None,
        *,
        logger: logging.Logger | None = None,
        echo: Echo | None = None,
        ledger: ExportLedger | None = None,
    ) -> None:
        self.client = client
        self.options = options or ExportOptions()
        self.logger = logger or logging.getLogger("mailbox_export")
        self.echo = echo
        self.ledger = ledger

    def _echo(self, text: str) -> None:
        if self.echo is not None:
            self.echo(text)

    def _write(
        self,
        path: Path,
        content: bytes,
        *,
        owner: str,
        internet_message_id: str,
        message: MessageRecord,
        attachment_name: str | None = None,
    ) -> Path:
        try:
            path.write_bytes(content)
        except OSError as exc:
            raise ExportIOError(f"Unable to write {path}: {exc}") from exc
        if self.ledger is not None:
            self.ledger.record(
                path=path,
                owner=owner,
                internet_message_id=internet_message_id,
                message_id=message.message_id,
                attachment_name=attachment_name,
                checksum=sha256_hex(content),
                size=len(content),
            )
        return path


class AttachmentExporter(_MailboxTask):
    """Save every file attachment of one message."""

    def export(self, owner: str, internet_message_id: str) -> list[Path]:
        output_dir = resolve_output_dir(self.options.output_dir)

        try:
            message = self.client.find_message(owner, internet_message_id)
        except ITEM_FAILURES as exc:
            self.logger.warning(
                "Unable to look up %s in mailbox %s (%s). %s",
                internet_message_id,
                owner,
                exc,
                scope_hint(ATTACHMENT_SCOPES),
            )
            return []

        if not message.has_attachments:
            self.logger.warning("No attachments found for message '%s'", message.subject)
            return []

        written: list[Path] = []
        for attachment in self.client.list_attachments(owner, message.message_id):
            try:
                content = decode_content(attachment.content_bytes)
            except binascii.Error as exc:
                raise ExportIOError(
                    f"Attachment '{attachment.name}' carries invalid base64 content"
                ) from exc

            path = output_dir / attachment_filename(message, attachment)
            self._echo(
                f"{internet_message_id}: found attachment {attachment.name} ({attachment.size} bytes)"
            )
            written.append(
                self._write(
                    path,
                    content,
                    owner=owner,
                    internet_message_id=internet_message_id,
                    message=message,
                    attachment_name=attachment.name,
                )
            )
            self._echo(f"{internet_message_id}: saved as {path.name}")
            self.logger.info("Wrote attachment '%s' to %s", attachment.name, path)
        return written


class MessageExporter(_MailboxTask):
    """Save messages by Internet Message ID, one at a time or from a list file."""

    def __init__(self, client: MailSource, options: ExportOptions | None = None, **kwargs) -> None:
        super().__init__(client, options, **kwargs)
        self.attachments = AttachmentExporter(
            client,
            self.options,
            logger=self.logger,
            echo=self.echo,
            ledger=self.ledger,
        )

    def export(
        self,
        owner: str,
        internet_message_id: str | None = None,
        input_file: Path | None = None,
    ) -> ExportSummary:
        """Export one message, or every message listed in ``input_file``.

        Pre-flight problems raise :class:`ConfigError` before Graph is
        contacted. A failed lookup of a single identifier raises
        :class:`AuthError` (or :class:`MessageLookupError` when the mailbox
        simply has no such message). In batch mode every per-item failure is
        logged and recorded in :attr:`ExportSummary.not_collected`.
        """
        output_dir = resolve_output_dir(self.options.output_dir)

        if internet_message_id and input_file is not None:
            raise ConfigError("Pass either an Internet Message ID or an input file, not both")
        if input_file is not None:
            identifiers = read_identifiers(input_file)
            return self._export_batch(owner, identifiers, output_dir)
        if not internet_message_id:
            raise ConfigError("Either an Internet Message ID or an input file is required")

        message = self._probe(owner, internet_message_id)
        summary = ExportSummary()
        self._collect(owner, internet_message_id, message, output_dir, summary)
        return summary

    def _probe(self, owner: str, internet_message_id: str) -> MessageRecord:
        try:
            return self.client.find_message(owner, internet_message_id)
        except MessageLookupError as exc:
            # The mailbox answered; it just has no such message.
            self.logger.error("%s", exc)
            raise
        except ITEM_FAILURES as exc:
            message = f"Unable to look up {internet_message_id}: {exc}. {scope_hint(MESSAGE_SCOPES)}"
            self.logger.error("%s", message)
            raise AuthError(message, scopes=MESSAGE_SCOPES) from exc

    def _export_batch(self, owner: str, identifiers: list[str], output_dir: Path) -> ExportSummary:
        summary = ExportSummary()
        self.logger.info("Exporting %s messages from mailbox %s", len(identifiers), owner)
        for identifier in identifiers:
            try:
                message = self.client.find_message(owner, identifier)
                self._collect(owner, identifier, message, output_dir, summary)
            except ITEM_FAILURES as exc:
                self.logger.warning("Unable to collect %s: %s", identifier, exc)
                summary.not_collected.append(identifier)

        if summary.not_collected:
            self.logger.warning(
                "The following Internet Message IDs were not collected: %s",
                ", ".join(summary.not_collected),
            )
        else:
            self.logger.info("All %s messages collected", len(identifiers))
        if summary.attachments_not_collected:
            self.logger.warning(
                "Messages collected without their attachments: %s",
                ", ".join(summary.attachments_not_collected),
            )
        return summary

    def _collect(
        self,
        owner: str,
        internet_message_id: str,
        message: MessageRecord,
        output_dir: Path,
        summary: ExportSummary,
    ) -> None:
        """Write the message body, then its attachments when requested.

        Once the body is on disk the message counts as collected; an attachment
        failure only lands the identifier in ``attachments_not_collected``.
        """
        path = output_dir / message_filename(message, self.options.extension)
        content = self.client.get_message_content(owner, message.message_id)
        summary.written.append(
            self._write(
                path,
                content,
                owner=owner,
                internet_message_id=internet_message_id,
                message=message,
            )
        )
        self.logger.info("Exported message '%s' to %s", message.subject, path)

        if not self.options.include_attachments:
            return
        try:
            summary.written.extend(self.attachments.export(owner, internet_message_id))
        except ITEM_FAILURES as exc:
            self.logger.warning("Attachments of %s not collected: %s", internet_message_id, exc)
            summary.attachments_not_collected.append(internet_message_id)


def render_record(record: dict[str, Any]) -> str:
    """Lay a Graph resource out as aligned ``key : value`` lines."""
    items = [(key, value) for key, value in record.items() if not key.startswith("@odata")]
    if not items:
        return ""
    width = max(len(key) for key, _ in items)
    lines = []
    for key, value in items:
        if isinstance(value, (dict, list)):
            value = json.dumps(value, ensure_ascii=False)
        elif value is None:
            value = ""
        lines.append(f"{key:<{width}} : {value}")
    return "\n".join(lines)


class MessageViewer(_MailboxTask):
    """Print one message to the console without writing files."""

    def show(self, owner: str, internet_message_id: str) -> str | None:
        try:
            message = self.client.find_message(owner, internet_message_id)
        except ITEM_FAILURES as exc:
            self.logger.warning(
                "Unable to look up %s in mailbox %s (%s). %s",
                internet_message_id,
                owner,
                exc,
                scope_hint(VIEWER_SCOPES),
            )
            return None

        text = render_record(self.client.get_message(owner, message.message_id))
        self._echo(text)
        return text
