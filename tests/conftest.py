"""Shared fixtures: a fake Graph client that records every call it serves."""

from __future__ import annotations

import base64
import logging
from datetime import UTC, datetime

import pytest

from mailbox_export.errors import AuthError, MessageLookupError
from mailbox_export.models import AttachmentRecord, MessageRecord


class FakeMailSource:
    """In-memory stand-in for GraphClient."""

    def __init__(self):
        self.messages: dict[str, MessageRecord] = {}
        self.contents: dict[str, bytes] = {}
        self.attachments: dict[str, list[AttachmentRecord]] = {}
        self.resources: dict[str, dict] = {}
        self.auth_failure = False
        # method name -> exception raised after a successful lookup
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple] = []

    def add_message(
        self,
        internet_message_id: str,
        subject: str,
        received: datetime,
        content: bytes = b"From: a@example.com\r\n\r\nbody",
        attachments: list[AttachmentRecord] | None = None,
    ) -> MessageRecord:
        message_id = f"AAMk-{len(self.messages)}"
        record = MessageRecord(
            message_id=message_id,
            internet_message_id=internet_message_id,
            subject=subject,
            received=received,
            has_attachments=bool(attachments),
        )
        self.messages[internet_message_id] = record
        self.contents[message_id] = content
        self.attachments[message_id] = attachments or []
        self.resources[message_id] = {
            "@odata.etag": 'W/"abc"',
            "id": message_id,
            "subject": subject,
            "internetMessageId": internet_message_id,
            "from": {"emailAddress": {"address": "a@example.com"}},
        }
        return record

    def find_message(self, owner, internet_message_id):
        self.calls.append(("find_message", owner, internet_message_id))
        if self.auth_failure:
            raise AuthError("Unable to obtain Graph token: expired")
        try:
            return self.messages[internet_message_id]
        except KeyError:
            raise MessageLookupError(
                f"No message with Internet Message ID {internet_message_id}",
                internet_message_id=internet_message_id,
            ) from None

    def _fail(self, method):
        if method in self.failures:
            raise self.failures[method]

    def get_message(self, owner, message_id):
        self.calls.append(("get_message", owner, message_id))
        self._fail("get_message")
        return self.resources[message_id]

    def get_message_content(self, owner, message_id):
        self.calls.append(("get_message_content", owner, message_id))
        self._fail("get_message_content")
        return self.contents[message_id]

    def list_attachments(self, owner, message_id):
        self.calls.append(("list_attachments", owner, message_id))
        self._fail("list_attachments")
        return self.attachments[message_id]


def make_attachment(name: str, payload: bytes) -> AttachmentRecord:
    return AttachmentRecord(
        attachment_id=f"att-{name}",
        name=name,
        size=len(payload),
        content_bytes=base64.b64encode(payload).decode("ascii"),
    )


RECEIVED = datetime(2024, 3, 5, 14, 7, 9, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _work_in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def source():
    return FakeMailSource()


@pytest.fixture
def export_logger():
    logger = logging.getLogger("mailbox_export.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def received():
    return RECEIVED


@pytest.fixture
def attachment():
    return make_attachment
