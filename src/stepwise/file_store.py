# file_store.py
# File-mutation collaborators: a local workspace directory, or the session
# HTTP API that owns the project files.

import logging
from pathlib import Path

import httpx

from stepwise.models import HISTORY_LIMIT, ChatMessage, RemoteFile
from stepwise.parser import get_file_name

logger = logging.getLogger(__name__)


class FileStoreError(Exception):
    """Raised when a file operation is refused or the backing store fails."""


# ---------------------------------------------------------------------------
# Local workspace
# ---------------------------------------------------------------------------


class LocalFileStore:
    """
    Project files kept under a single workspace directory.

    Ids are the posix paths relative to the root. Any path that resolves
    outside the root is refused.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        candidate = (self._root / path.lstrip("/")).resolve()
        if candidate != self._root and self._root not in candidate.parents:
            raise FileStoreError(f"SECURITY BLOCK: '{path}' resolves outside the workspace.")
        return candidate

    def upsert(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.debug("Wrote %d bytes to %s", len(content), target)

    def list(self) -> list[RemoteFile]:
        files = sorted(p for p in self._root.rglob("*") if p.is_file())
        return [
            RemoteFile(id=rel, path=rel)
            for rel in (p.relative_to(self._root).as_posix() for p in files)
        ]

    def delete(self, file_id: str) -> None:
        target = self._resolve(file_id)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise FileStoreError(f"No file with id '{file_id}'.") from exc


# ---------------------------------------------------------------------------
# Session HTTP API
# ---------------------------------------------------------------------------


class SessionApi:
    """
    Client for the session API that stores project files, chat history and
    the base system prompt.

    Example:
        api = SessionApi("http://localhost:5000")
        store = api.files(42)
        store.upsert("src/Main.java", "class Main {}")
    """

    def __init__(self, base_url: str, client: httpx.Client | None = None, timeout: float = 30.0) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FileStoreError(f"{method} {url} failed: {exc}") from exc
        return response

    # -- files ---------------------------------------------------------

    def upsert_file(self, session_id: int, path: str, content: str) -> None:
        self._request(
            "POST",
            f"/api/sessions/{session_id}/files",
            json={
                "name": get_file_name(path),
                "path": path,
                "content": content,
                "isFolder": False,
            },
        )

    def list_files(self, session_id: int) -> list[RemoteFile]:
        entries = self._request("GET", f"/api/sessions/{session_id}/files").json()
        return [
            RemoteFile(id=str(entry["id"]), path=entry["path"])
            for entry in entries
            if not entry.get("isFolder")
        ]

    def delete_file(self, session_id: int, file_id: str) -> None:
        self._request("DELETE", f"/api/sessions/{session_id}/files/{file_id}")

    def files(self, session_id: int) -> "SessionFileStore":
        return SessionFileStore(self, session_id)

    # -- conversation --------------------------------------------------

    def messages(self, session_id: int) -> list[ChatMessage]:
        """Most recent chat history; anything not from the assistant counts as user."""
        entries = self._request("GET", f"/api/sessions/{session_id}/messages").json()
        return [
            ChatMessage(
                role="assistant" if entry.get("role") == "assistant" else "user",
                content=entry.get("content") or "",
            )
            for entry in entries[-HISTORY_LIMIT:]
        ]

    def system_prompt(self, session_id: int, mode: str) -> str:
        data = self._request(
            "POST", f"/api/sessions/{session_id}/system-prompt", json={"mode": mode}
        ).json()
        return data.get("systemPrompt") or ""

    def close(self) -> None:
        self._client.close()


class SessionFileStore:
    """FileStore view of one session's files on a SessionApi."""

    def __init__(self, api: SessionApi, session_id: int) -> None:
        self._api = api
        self._session_id = session_id

    def upsert(self, path: str, content: str) -> None:
        self._api.upsert_file(self._session_id, path, content)

    def list(self) -> list[RemoteFile]:
        return self._api.list_files(self._session_id)

    def delete(self, file_id: str) -> None:
        self._api.delete_file(self._session_id, file_id)
