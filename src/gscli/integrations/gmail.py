# Gmail Client — read-only Gmail API access for a resolved account.
# Created: 2026-10-05

from __future__ import annotations

import base64
import logging
from typing import Any

from gscli.integrations.session import GoogleClient

logger = logging.getLogger(__name__)

_GMAIL_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"


def _decode(data: str) -> str:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4)).decode(
        "utf-8", errors="replace"
    )


def _header_map(payload: dict[str, Any]) -> dict[str, str]:
    return {h["name"].lower(): h["value"] for h in payload.get("headers", [])}


class GmailClient:
    """Read-only client for the Gmail API (messages and labels)."""

    def __init__(self, session: GoogleClient):
        self.session = session

    async def list_messages(self, label: str = "INBOX", limit: int = 10) -> list[dict[str, Any]]:
        """List the newest messages carrying ``label`` (e.g. INBOX, SENT, DRAFT)."""
        return await self._list({"labelIds": [label.upper()], "maxResults": limit}, limit)

    async def search(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        """Search messages using Gmail search-bar syntax (e.g. 'from:bob is:unread')."""
        return await self._list({"q": query, "maxResults": limit}, limit)

    async def _list(self, params: dict[str, Any], limit: int) -> list[dict[str, Any]]:
        headers = self.session.headers

        async with self.session.http() as client:
            resp = await client.get(f"{_GMAIL_BASE}/messages", params=params, headers=headers)
            resp.raise_for_status()
            messages = resp.json().get("messages", [])

            results = []
            for msg in messages[:limit]:
                resp = await client.get(
                    f"{_GMAIL_BASE}/messages/{msg['id']}",
                    params={
                        "format": "metadata",
                        "metadataHeaders": ["From", "Subject", "Date"],
                    },
                    headers=headers,
                )
                resp.raise_for_status()
                results.append(self._summary(resp.json()))

        return results

    @staticmethod
    def _summary(data: dict[str, Any]) -> dict[str, Any]:
        headers = _header_map(data.get("payload", {}))
        return {
            "id": data.get("id", ""),
            "threadId": data.get("threadId", ""),
            "subject": headers.get("subject", "(No Subject)"),
            "from": headers.get("from", "Unknown"),
            "date": headers.get("date", ""),
            "snippet": data.get("snippet", ""),
            "labels": data.get("labelIds", []),
        }

    async def read(self, message_id: str) -> dict[str, Any]:
        """Read a full message.

        Returns:
            Dict with id, threadId, subject, from, to, date, body, labels.
        """
        data = await self.session.get_json(
            f"{_GMAIL_BASE}/messages/{message_id}", params={"format": "full"}
        )
        payload = data.get("payload", {})
        headers = _header_map(payload)

        return {
            "id": data.get("id", message_id),
            "threadId": data.get("threadId", ""),
            "subject": headers.get("subject", "(No Subject)"),
            "from": headers.get("from", "Unknown"),
            "to": headers.get("to", "Unknown"),
            "date": headers.get("date", ""),
            "body": self._extract_body(payload) or data.get("snippet", ""),
            "labels": data.get("labelIds", []),
        }

    async def list_labels(self) -> list[dict[str, str]]:
        """List all labels (system and user)."""
        data = await self.session.get_json(f"{_GMAIL_BASE}/labels")
        return [
            {"id": lb["id"], "name": lb["name"], "type": lb.get("type", "")}
            for lb in data.get("labels", [])
        ]

    @staticmethod
    def _extract_body(payload: dict) -> str:
        """Extract a text body, preferring text/plain over text/html. Empty if neither."""
        found: dict[str, str] = {}

        def walk(part: dict) -> None:
            mime = part.get("mimeType", "")
            data = part.get("body", {}).get("data", "")
            if data and mime in ("text/plain", "text/html") and mime not in found:
                found[mime] = _decode(data)
            for sub in part.get("parts", []):
                walk(sub)

        walk(payload)
        if "text/plain" in found:
            return found["text/plain"]
        if "text/html" in found:
            return found["text/html"]

        # Single-part message of another type
        data = payload.get("body", {}).get("data", "")
        return _decode(data) if data else ""
