"""
Notion Note Store

NoteStore backed by a Notion database, spoken to over the REST API.

One database holds every note. The Slack message id lives in a rich_text
property and is the lookup key for duplicate checks, replies and reactions.
Archived pages drop out of database queries, so a restored note can reuse
the same Slack message id.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..common.config import NotionConfig
from ..common.schemas import NewNote, Note, NoteStatus
from . import properties as p
from .base import (
    APPEND_SEPARATOR,
    NoteStore,
    NoteStoreError,
    check_search_limit,
    is_drifted,
)
from .properties import page_to_note, select_prop, text_prop, date_prop
from .schema import DATABASE_PROPERTIES, DATABASE_TITLE, missing_properties

logger = logging.getLogger("brain.store.notion")

NOTION_API_URL = "https://api.notion.com/v1"

# Notion's page_size ceiling
MAX_PAGE_SIZE = 100


def _normalize_id(value: str) -> str:
    return (value or "").replace("-", "").lower()


class NotionNoteStore(NoteStore):
    """
    NoteStore over a Notion database.

    Usage:
        store = NotionNoteStore(api_key="secret_...", database_id="abc123")
        await store.ensure_ready()
        note_id = await store.create(new_note)
        await store.close()
    """

    def __init__(
        self,
        api_key: str,
        database_id: str = "",
        parent_page_id: str = "",
        api_version: str = "2022-06-28",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the store.

        Args:
            api_key: Notion integration secret
            database_id: Existing database to use
            parent_page_id: Page under which to create a database when
                database_id is empty
            api_version: Notion-Version header
            timeout: Per-request timeout in seconds
            client: Preconfigured httpx client (tests)
        """
        if not api_key and client is None:
            logger.warning("Notion API key not configured")
        self._database_id = (database_id or "").strip()
        self._parent_page_id = (parent_page_id or "").strip()
        self._ready = False
        self._client = client or httpx.AsyncClient(
            base_url=NOTION_API_URL,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": api_version,
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_config(cls, config: NotionConfig) -> "NotionNoteStore":
        return cls(
            api_key=config.api_key,
            database_id=config.database_id,
            parent_page_id=config.parent_page_id,
            api_version=config.api_version,
            timeout=config.request_timeout,
        )

    @property
    def database_id(self) -> str:
        return self._database_id

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def ensure_ready(self) -> None:
        """Create the database if needed, otherwise add missing properties.

        Idempotent; does the work once per store instance.
        """
        if self._ready:
            return

        if not self._database_id:
            if not self._parent_page_id:
                raise NoteStoreError("NOTION_DATABASE_ID or NOTION_PARENT_PAGE_ID must be set")
            await self._create_database()
        else:
            await self._ensure_schema()

        self._ready = True

    async def _create_database(self) -> None:
        logger.info("Creating database under parent page %s...", self._parent_page_id[:8])
        data = await self._request("POST", "/databases", json={
            "parent": {"type": "page_id", "page_id": self._parent_page_id},
            "title": [{"type": "text", "text": {"content": DATABASE_TITLE}}],
            "properties": DATABASE_PROPERTIES,
        })
        self._database_id = data["id"]
        logger.warning(
            "Created Notion database %s; set NOTION_DATABASE_ID to reuse it", self._database_id
        )

    async def _ensure_schema(self) -> None:
        try:
            db = await self._request("GET", f"/databases/{self._database_id}")
            missing = missing_properties(db.get("properties") or {})
            if missing:
                logger.info("Adding missing properties to database: %s", sorted(missing))
                await self._request(
                    "PATCH", f"/databases/{self._database_id}", json={"properties": missing}
                )
        except NoteStoreError as e:
            # Writes may still succeed against the existing schema
            logger.error("Failed to validate/update database schema: %s", e)

    # ------------------------------------------------------------------
    # NoteStore operations
    # ------------------------------------------------------------------

    async def exists(self, external_message_id: str) -> bool:
        _require(external_message_id, "external_message_id")
        results = await self._query(_external_id_filter(external_message_id), limit=1)
        return len(results) > 0

    async def create(self, new_note: NewNote) -> str:
        data = await self._request("POST", "/pages", json={
            "parent": {"database_id": self._db()},
            "properties": p.build_properties(new_note),
        })
        page_id = data.get("id")
        if not page_id:
            raise NoteStoreError("Notion create returned no page id")
        return page_id

    async def find_by_external_id(self, external_message_id: str) -> Optional[Note]:
        _require(external_message_id, "external_message_id")
        results = await self._query(_external_id_filter(external_message_id), limit=1)
        if not results:
            return None
        return page_to_note(results[0])

    async def append_content(
        self,
        note_id: str,
        additional_text: str,
        reply_id: Optional[str] = None,
    ) -> bool:
        _require(note_id, "note_id")
        _require(additional_text, "additional_text")
        page = await self._request("GET", f"/pages/{note_id}")
        properties = page.get("properties") or {}

        reply_ids = p.split_list(p.get_text(properties, p.APPENDED_REPLIES))
        if reply_id and reply_id in reply_ids:
            return False

        current = p.get_text(properties, p.CONTENT)
        new_content = f"{current}{APPEND_SEPARATOR}{additional_text}" if current else additional_text
        update = {p.CONTENT: text_prop(new_content)}
        if reply_id:
            update[p.APPENDED_REPLIES] = text_prop(", ".join(reply_ids + [reply_id]))
        await self._update(note_id, update)
        return True

    async def set_status(self, note_id: str, status: NoteStatus) -> None:
        await self._update(note_id, {p.STATUS: select_prop(status.value)})

    async def set_synced_status(self, note_id: str, status: NoteStatus) -> None:
        await self._update(note_id, {p.SYNCED_STATUS: select_prop(status.value)})

    async def archive(self, note_id: str) -> None:
        _require(note_id, "note_id")
        await self._request("PATCH", f"/pages/{note_id}", json={"archived": True})

    async def update_reminder_meta(self, note_id: str, timestamp: datetime, count: int) -> None:
        if count < 0:
            raise ValueError("reminder count must be >= 0")
        await self._update(note_id, {
            p.LAST_REMINDER: date_prop(timestamp),
            p.REMINDER_COUNT: {"number": count},
        })

    async def search(self, query: str, limit: int = 10) -> List[Note]:
        _require(query, "query")
        check_search_limit(limit)

        # Notion search spans the whole workspace; keep only our database's pages
        data = await self._request("POST", "/search", json={
            "query": query,
            "filter": {"property": "object", "value": "page"},
            "page_size": min(limit * 2, MAX_PAGE_SIZE),
        })
        database_id = _normalize_id(self._db())

        notes: List[Note] = []
        for page in (data.get("results") or [])[:limit * 2]:
            if len(notes) >= limit:
                break
            if page.get("object") != "page":
                continue
            parent = page.get("parent") or {}
            if parent.get("type") != "database_id":
                continue
            if _normalize_id(parent.get("database_id", "")) != database_id:
                continue
            notes.append(page_to_note(page))
        return notes

    async def list_with_urls(self, limit: int = 20) -> List[Note]:
        pages = await self._query({
            "and": [
                {"property": p.URLS, "rich_text": {"is_not_empty": True}},
                {"property": p.STATUS, "select": {"equals": NoteStatus.OPEN.value}},
            ]
        }, limit=limit)
        return [note for note in map(page_to_note, pages) if note.has_urls]

    async def list_reminder_candidates(self, limit: Optional[int] = None) -> List[Note]:
        pages = await self._query({
            "and": [
                {"property": p.NEXT_ACTION, "rich_text": {"is_not_empty": True}},
                {"property": p.STATUS, "select": {"equals": NoteStatus.OPEN.value}},
            ]
        }, limit=limit)
        return [note for note in map(page_to_note, pages) if note.next_action]

    async def list_status_drift(self, limit: int = 100) -> List[Note]:
        # Fetch everything that is or was Done, then keep real transitions
        pages = await self._query({
            "or": [
                {"property": p.STATUS, "select": {"equals": NoteStatus.DONE.value}},
                {"property": p.SYNCED_STATUS, "select": {"equals": NoteStatus.DONE.value}},
            ]
        })
        drifted = [note for note in map(page_to_note, pages) if is_drifted(note)]
        return drifted[:limit]

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _db(self) -> str:
        if not self._database_id:
            raise NoteStoreError("Notion database is not initialized")
        return self._database_id

    async def _update(self, note_id: str, properties: Dict[str, Any]) -> None:
        _require(note_id, "note_id")
        await self._request("PATCH", f"/pages/{note_id}", json={"properties": properties})

    async def _query(
        self,
        filter_: Dict[str, Any],
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run a database query, following cursors up to ``limit`` results (all when None)"""
        results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            remaining = MAX_PAGE_SIZE if limit is None else limit - len(results)
            body: Dict[str, Any] = {
                "filter": filter_,
                "page_size": min(max(remaining, 1), MAX_PAGE_SIZE),
            }
            if cursor:
                body["start_cursor"] = cursor

            data = await self._request("POST", f"/databases/{self._db()}/query", json=body)
            batch = data.get("results")
            if not isinstance(batch, list):
                raise NoteStoreError("Invalid query response from Notion API")
            results.extend(page for page in batch if isinstance(page, dict) and page.get("id"))

            cursor = data.get("next_cursor")
            if limit is not None and len(results) >= limit:
                break
            if not data.get("has_more") or not cursor:
                break

        return results if limit is None else results[:limit]

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise NoteStoreError(f"Notion {method} {path} failed: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", "")
            except ValueError:
                message = response.text[:200]
            raise NoteStoreError(f"Notion {method} {path} returned {response.status_code}: {message}")

        try:
            return response.json()
        except ValueError as e:
            raise NoteStoreError(f"Notion {method} {path} returned invalid JSON") from e


def _external_id_filter(external_message_id: str) -> Dict[str, Any]:
    return {"property": p.SLACK_MESSAGE_ID, "rich_text": {"equals": external_message_id}}


def _require(value: str, name: str) -> None:
    if not value or not isinstance(value, str):
        raise ValueError(f"{name} must be a non-empty string")
