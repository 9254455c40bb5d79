# Google Drive Client — read-only Drive API access for a resolved account.
# Created: 2026-10-05

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from gscli.integrations.session import GoogleClient

logger = logging.getLogger(__name__)

_DRIVE_BASE = "https://www.googleapis.com/drive/v3"
_FILE_FIELDS = "id,name,mimeType,size,modifiedTime,webViewLink"

FOLDER_MIME = "application/vnd.google-apps.folder"

# Workspace mime type -> {format: (export mime, file extension)}
EXPORT_FORMATS: dict[str, dict[str, tuple[str, str]]] = {
    "application/vnd.google-apps.document": {
        "pdf": ("application/pdf", "pdf"),
        "markdown": ("text/markdown", "md"),
        "txt": ("text/plain", "txt"),
        "docx": (
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "docx",
        ),
    },
    "application/vnd.google-apps.spreadsheet": {
        "pdf": ("application/pdf", "pdf"),
        "csv": ("text/csv", "csv"),
        "tsv": ("text/tab-separated-values", "tsv"),
        "xlsx": (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "xlsx",
        ),
    },
    "application/vnd.google-apps.presentation": {
        "pdf": ("application/pdf", "pdf"),
        "pptx": (
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "pptx",
        ),
    },
    "application/vnd.google-apps.drawing": {
        "pdf": ("application/pdf", "pdf"),
    },
}


def _quote(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _file_record(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": item.get("id", ""),
        "name": item.get("name", ""),
        "mimeType": item.get("mimeType", ""),
        "size": item.get("size"),
        "modifiedTime": item.get("modifiedTime", ""),
        "webViewLink": item.get("webViewLink"),
        "isFolder": item.get("mimeType") == FOLDER_MIME,
    }


class DriveClient:
    """Read-only client for Google Drive API v3."""

    def __init__(self, session: GoogleClient):
        self.session = session

    async def _query(self, q: str, limit: int) -> list[dict[str, Any]]:
        data = await self.session.get_json(
            f"{_DRIVE_BASE}/files",
            params={
                "q": q,
                "pageSize": min(limit, 1000),
                "fields": f"files({_FILE_FIELDS})",
                "orderBy": "modifiedTime desc",
            },
        )
        return [_file_record(f) for f in data.get("files", [])]

    async def list_files(self, folder: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        """List files in a folder (by name or ID), or in My Drive root."""
        if not folder:
            return await self._query("'root' in parents and trashed = false", limit)

        matches = await self._query(
            f"name = '{_quote(folder)}' and mimeType = '{FOLDER_MIME}' and trashed = false", 1
        )
        folder_id = matches[0]["id"] if matches else folder
        return await self._query(f"'{_quote(folder_id)}' in parents and trashed = false", limit)

    async def search(self, term: str, limit: int = 50) -> list[dict[str, Any]]:
        """Find files whose name contains ``term``."""
        return await self._query(f"name contains '{_quote(term)}' and trashed = false", limit)

    async def get_metadata(self, file_id: str) -> dict[str, Any]:
        data = await self.session.get_json(
            f"{_DRIVE_BASE}/files/{file_id}", params={"fields": _FILE_FIELDS}
        )
        return _file_record(data)

    async def download(
        self, file_id: str, output_dir: str | Path | None = None, fmt: str = "pdf"
    ) -> Path:
        """Download a file; Google Workspace files are exported as ``fmt``.

        Returns:
            Path of the written file.

        Raises:
            ValueError: ``fmt`` is not available for this Workspace file type.
        """
        meta = await self.get_metadata(file_id)
        name = meta["name"] or file_id
        mime = meta["mimeType"]

        if mime in EXPORT_FORMATS:
            formats = EXPORT_FORMATS[mime]
            if fmt not in formats:
                raise ValueError(
                    f"Format '{fmt}' is not supported for this file type. "
                    f"Choose one of: {', '.join(formats)}"
                )
            export_mime, ext = formats[fmt]
            url = f"{_DRIVE_BASE}/files/{file_id}/export"
            params = {"mimeType": export_mime}
            name = f"{name}.{ext}"
        else:
            url = f"{_DRIVE_BASE}/files/{file_id}"
            params = {"alt": "media"}

        async with self.session.http(timeout=60) as client:
            resp = await client.get(url, params=params, headers=self.session.headers)
            resp.raise_for_status()

        output_path = Path(output_dir or Path.cwd()).expanduser() / Path(name).name
        output_path.write_bytes(resp.content)
        logger.info("Downloaded %s (%d bytes) to %s", file_id, len(resp.content), output_path)
        return output_path

    async def list_comments(
        self, file_id: str, include_resolved: bool = False
    ) -> list[dict[str, Any]]:
        """List comments on a file. Resolved threads are skipped unless requested."""
        data = await self.session.get_json(
            f"{_DRIVE_BASE}/files/{file_id}/comments",
            params={
                "fields": (
                    "comments(id,content,createdTime,resolved,quotedFileContent,"
                    "author(displayName),replies(content,author(displayName)))"
                ),
                "pageSize": 100,
            },
        )

        comments = []
        for c in data.get("comments", []):
            if c.get("resolved") and not include_resolved:
                continue
            comments.append(
                {
                    "id": c.get("id", ""),
                    "author": c.get("author", {}).get("displayName", "Unknown"),
                    "content": c.get("content", ""),
                    "createdTime": c.get("createdTime", ""),
                    "resolved": bool(c.get("resolved")),
                    "quotedContent": c.get("quotedFileContent", {}).get("value", ""),
                    "replies": [
                        {
                            "author": r.get("author", {}).get("displayName", "Unknown"),
                            "content": r.get("content", ""),
                        }
                        for r in c.get("replies", [])
                    ],
                }
            )
        return comments
