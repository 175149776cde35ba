"""Typed containers for the Graph records the exporters work with."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass
class MessageRecord:
    """Read-only copy of one Outlook message, as returned by a lookup."""

    message_id: str
    internet_message_id: str
    subject: str
    received: datetime
    has_attachments: bool
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class AttachmentRecord:
    """A file attachment with its base64 payload."""

    attachment_id: str
    name: str
    size: int
    content_bytes: str
    content_type: str = "application/octet-stream"


@dataclass
class ExportSummary:
    """Outcome of one MessageExporter run."""

    written: list[Path] = field(default_factory=list)
    not_collected: list[str] = field(default_factory=list)
    # Bodies on disk whose attachments failed.
    attachments_not_collected: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.not_collected and not self.attachments_not_collected
