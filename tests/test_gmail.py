# Tests for integrations/gmail.py
# Created: 2026-10-09

import base64
from unittest.mock import AsyncMock, MagicMock, patch

from gscli.integrations.gmail import GmailClient
from gscli.integrations.session import GoogleClient


def _b64(text: bytes) -> str:
    return base64.urlsafe_b64encode(text).decode().rstrip("=")


# ---------------------------------------------------------------------------
# GmailClient._extract_body
# ---------------------------------------------------------------------------


class TestExtractBody:
    def test_plain_text_direct(self):
        payload = {"mimeType": "text/plain", "body": {"data": _b64(b"Hello world")}}
        assert GmailClient._extract_body(payload) == "Hello world"

    def test_prefers_plain_over_html(self):
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [
                {"mimeType": "text/html", "body": {"data": _b64(b"<p>HTML</p>")}},
                {"mimeType": "text/plain", "body": {"data": _b64(b"Text body")}},
            ],
        }
        assert GmailClient._extract_body(payload) == "Text body"

    def test_html_only(self):
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [{"mimeType": "text/html", "body": {"data": _b64(b"<p>Hi</p>")}}],
        }
        assert GmailClient._extract_body(payload) == "<p>Hi</p>"

    def test_nested_multipart(self):
        payload = {
            "mimeType": "multipart/mixed",
            "parts": [
                {
                    "mimeType": "multipart/alternative",
                    "parts": [{"mimeType": "text/plain", "body": {"data": _b64(b"Nested")}}],
                }
            ],
        }
        assert GmailClient._extract_body(payload) == "Nested"

    def test_no_text_content(self):
        assert GmailClient._extract_body({"mimeType": "multipart/mixed", "parts": []}) == ""


# ---------------------------------------------------------------------------
# API calls
# ---------------------------------------------------------------------------


def _resp(data):
    resp = MagicMock()
    resp.json.return_value = data
    resp.raise_for_status = MagicMock()
    return resp


async def test_list_messages(make_account):
    gmail = GmailClient(GoogleClient(make_account()))
    meta = {
        "id": "m1",
        "threadId": "t1",
        "snippet": "hi there",
        "labelIds": ["INBOX"],
        "payload": {
            "headers": [
                {"name": "Subject", "value": "Hello"},
                {"name": "From", "value": "bob@x.com"},
                {"name": "Date", "value": "Mon, 5 Oct 2026"},
            ]
        },
    }
    with patch("httpx.AsyncClient") as mock_client_cls:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(
            side_effect=[_resp({"messages": [{"id": "m1"}]}), _resp(meta)]
        )
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        mock_client_cls.return_value = mock_client

        messages = await gmail.list_messages(label="inbox", limit=5)

    assert messages == [
        {
            "id": "m1",
            "threadId": "t1",
            "subject": "Hello",
            "from": "bob@x.com",
            "date": "Mon, 5 Oct 2026",
            "snippet": "hi there",
            "labels": ["INBOX"],
        }
    ]
    first_call = mock_client.get.call_args_list[0]
    assert first_call.kwargs["params"] == {"labelIds": ["INBOX"], "maxResults": 5}
    assert first_call.kwargs["headers"] == {"Authorization": "Bearer access-a@x.com"}


async def test_search_empty(make_account):
    gmail = GmailClient(GoogleClient(make_account()))
    with patch("httpx.AsyncClient") as mock_client_cls:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=_resp({"resultSizeEstimate": 0}))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        mock_client_cls.return_value = mock_client

        assert await gmail.search("is:unread") == []

    _, kwargs = mock_client.get.call_args
    assert kwargs["params"]["q"] == "is:unread"


async def test_read_falls_back_to_snippet(make_account):
    gmail = GmailClient(GoogleClient(make_account()))
    data = {
        "id": "m1",
        "snippet": "short",
        "payload": {"mimeType": "multipart/mixed", "parts": [], "headers": []},
    }
    with patch.object(GoogleClient, "get_json", new_callable=AsyncMock, return_value=data):
        msg = await gmail.read("m1")
    assert msg["body"] == "short"
    assert msg["subject"] == "(No Subject)"
    assert msg["to"] == "Unknown"


async def test_list_labels(make_account):
    gmail = GmailClient(GoogleClient(make_account()))
    data = {
        "labels": [
            {"id": "INBOX", "name": "INBOX", "type": "system"},
            {"id": "Label_1", "name": "Receipts"},
        ]
    }
    with patch.object(GoogleClient, "get_json", new_callable=AsyncMock, return_value=data):
        labels = await gmail.list_labels()
    assert labels == [
        {"id": "INBOX", "name": "INBOX", "type": "system"},
        {"id": "Label_1", "name": "Receipts", "type": ""},
    ]
