"""Microsoft Graph helper focused on single-message retrieval."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import msal
import requests
from requests import Response

from .config import Settings
from .errors import AuthError, MessageLookupError
from .models import AttachmentRecord, MessageRecord
from .utils import parse_graph_datetime

logger = logging.getLogger(__name__)

FILE_ATTACHMENT_TYPE = "#microsoft.graph.fileAttachment"


class GraphClient:
    """Thin wrapper that authenticates with Graph and fetches mailbox items."""

    GRAPH_SCOPE = ["https://graph.microsoft.com/.default"]
    GRAPH_BASE = "https://graph.microsoft.com/v1.0"
    MESSAGE_FIELDS = "id,subject,internetMessageId,receivedDateTime,hasAttachments"

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.scopes = settings.graph_scopes
        self.auth_mode = settings.graph_auth_mode
        self.authority = settings.authority_url
        self._token_cache = None

        if self.auth_mode == "client_credentials":
            self.app = msal.ConfidentialClientApplication(
                client_id=settings.graph_client_id,
                client_credential=settings.graph_client_secret,
                authority=self.authority,
            )
        else:
            token_cache = msal.SerializableTokenCache()
            cache_path = settings.graph_token_cache
            if cache_path.exists():
                token_cache.deserialize(cache_path.read_text())
            self._token_cache = token_cache
            self.app = msal.PublicClientApplication(
                client_id=settings.graph_client_id,
                authority=self.authority,
                token_cache=token_cache,
            )

    def find_message(self, owner: str, internet_message_id: str) -> MessageRecord:
        """Resolve an Internet Message ID to the owner's message record."""
        url = f"{self._user_root(owner)}/messages"
        params = {
            "$filter": f"internetMessageId eq '{internet_message_id}'",
            "$select": self.MESSAGE_FIELDS,
        }
        logger.debug("Looking up %s in mailbox %s", internet_message_id, owner)
        payload = self._get(url, params=params).json()
        matches = payload.get("value", [])
        if not matches:
            raise MessageLookupError(
                f"No message with Internet Message ID {internet_message_id} in mailbox {owner}",
                internet_message_id=internet_message_id,
            )
        if len(matches) > 1:
            logger.debug(
                "%s matched %s messages; using the first", internet_message_id, len(matches)
            )
        return self._to_message(matches[0])

    def get_message(self, owner: str, message_id: str) -> dict[str, Any]:
        """Return the full Graph message resource."""
        url = f"{self._user_root(owner)}/messages/{message_id}"
        return self._get(url).json()

    def get_message_content(self, owner: str, message_id: str) -> bytes:
        """Download the message as raw MIME."""
        url = f"{self._user_root(owner)}/messages/{message_id}/$value"
        return self._get(url, stream=True).content

    def list_attachments(self, owner: str, message_id: str) -> list[AttachmentRecord]:
        """List file attachments with their base64 content."""
        url = f"{self._user_root(owner)}/messages/{message_id}/attachments"
        payload = self._get(url).json()
        attachments: list[AttachmentRecord] = []
        for raw in payload.get("value", []):
            if raw.get("@odata.type", FILE_ATTACHMENT_TYPE) != FILE_ATTACHMENT_TYPE:
                logger.debug("Skipping non-file attachment %s", raw.get("name"))
                continue
            attachments.append(self._to_attachment(raw))
        return attachments

    def _get(self, url: str, params: dict | None = None, stream: bool = False) -> Response:
        headers = {"Authorization": f"Bearer {self._acquire_token()}"}
        resp = self.session.get(url, headers=headers, params=params, stream=stream, timeout=30)
        if resp.status_code in (401, 403):
            logger.error("Graph refused the request (%s): %s", resp.status_code, resp.text)
            raise AuthError(
                f"Graph refused the request with status {resp.status_code}", scopes=self.scopes
            )
        if resp.status_code == 404:
            raise MessageLookupError(f"Graph resource not found: {url}")
        if resp.status_code >= 400:
            logger.error("Graph request failed (%s): %s", resp.status_code, resp.text)
            resp.raise_for_status()
        return resp

    def _acquire_token(self) -> str:
        if self.auth_mode == "client_credentials":
            return self._acquire_token_client_credentials()
        return self._acquire_token_device_flow()

    def _acquire_token_client_credentials(self) -> str:
        result = self.app.acquire_token_silent(self.GRAPH_SCOPE, account=None)
        if not result:
            result = self.app.acquire_token_for_client(scopes=self.GRAPH_SCOPE)
        if "access_token" not in result:
            raise AuthError(
                f"Unable to obtain Graph token: {result.get('error_description')}",
                scopes=self.GRAPH_SCOPE,
            )
        return result["access_token"]

    def _acquire_token_device_flow(self) -> str:
        accounts = self.app.get_accounts()
        result = None
        if accounts:
            result = self.app.acquire_token_silent(self.scopes, account=accounts[0])
        if not result:
            flow = self.app.initiate_device_flow(scopes=self.scopes)
            if "user_code" not in flow:
                raise AuthError(f"Unable to start device code flow: {flow}", scopes=self.scopes)
            logger.info(flow.get("message"))
            result = self.app.acquire_token_by_device_flow(flow)
        if "access_token" not in result:
            raise AuthError(
                f"Unable to obtain Graph token: {result.get('error_description')}",
                scopes=self.scopes,
            )
        self._persist_token_cache()
        return result["access_token"]

    def _persist_token_cache(self) -> None:
        if not self._token_cache or not self._token_cache.has_state_changed:
            return
        cache_path: Path = self.settings.graph_token_cache
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(self._token_cache.serialize())

    def _user_root(self, owner: str) -> str:
        return f"{self.GRAPH_BASE}/users/{quote(owner)}"

    @staticmethod
    def _to_message(raw: dict) -> MessageRecord:
        return MessageRecord(
            message_id=raw["id"],
            internet_message_id=raw.get("internetMessageId", ""),
            subject=raw.get("subject") or "",
            received=parse_graph_datetime(raw["receivedDateTime"]),
            has_attachments=bool(raw.get("hasAttachments")),
            raw=raw,
        )

    @staticmethod
    def _to_attachment(raw: dict) -> AttachmentRecord:
        return AttachmentRecord(
            attachment_id=raw.get("id", ""),
            name=raw.get("name", ""),
            size=raw.get("size", 0),
            content_bytes=raw.get("contentBytes") or "",
            content_type=raw.get("contentType") or "application/octet-stream",
        )
