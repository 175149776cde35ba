"""Export individual Microsoft 365 mailbox items for forensic review."""

import logging

from .config import ExportOptions, Settings
from .errors import (
    AuthError,
    ConfigError,
    ErrorKind,
    ExportError,
    ExportIOError,
    MessageLookupError,
)
from .exporters import AttachmentExporter, MessageExporter, MessageViewer
from .models import AttachmentRecord, ExportSummary, MessageRecord

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AttachmentExporter",
    "AttachmentRecord",
    "AuthError",
    "ConfigError",
    "ErrorKind",
    "ExportError",
    "ExportIOError",
    "ExportOptions",
    "ExportSummary",
    "MessageExporter",
    "MessageLookupError",
    "MessageRecord",
    "MessageViewer",
    "Settings",
]
