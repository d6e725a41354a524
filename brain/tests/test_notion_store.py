"""
Tests for NotionNoteStore

The Notion REST API is replaced by an httpx.MockTransport that records
requests and answers from a routing function.
"""

import json

import httpx
import pytest

DB_ID = "11111111-2222-3333-4444-555555555555"


def rich(text):
    return {"rich_text": [{"type": "text", "plain_text": text, "text": {"content": text}}]}


def select(name):
    return {"select": {"name": name} if name else None}


def page(page_id="page-1", ts="1700000000.000100", content="Need to call the dentist", **props):
    properties = {
        "Title": {"title": [{"plain_text": content[:100]}]},
        "Content": rich(content),
        "Category": select("Projects"),
        "Confidence": {"number": 0.9},
        "Source Channel": rich("C1"),
        "Slack Message ID": rich(ts),
        "URLs": rich(""),
        "Status": select("Open"),
        "Synced Status": select("Open"),
        "Reminder Count": {"number": 0},
        "Timestamp": {"date": {"start": "2023-11-14T22:13:20+00:00"}},
    }
    properties.update(props)
    return {
        "object": "page",
        "id": page_id,
        "parent": {"type": "database_id", "database_id": DB_ID},
        "properties": properties,
    }


class Recorder:
    """Routes requests to canned responses and records them"""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        key = (request.method, request.url.path)
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, json={"message": f"no route for {key}"})
        result = handler(body) if callable(handler) else handler
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)


def make_store(routes, database_id=DB_ID, parent_page_id=""):
    from brain.store.notion import NOTION_API_URL, NotionNoteStore

    recorder = Recorder(routes)
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder), base_url=NOTION_API_URL)
    store = NotionNoteStore(
        api_key="secret",
        database_id=database_id,
        parent_page_id=parent_page_id,
        client=client,
    )
    return store, recorder


QUERY = ("POST", f"/v1/databases/{DB_ID}/query")


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_writes_all_properties(self):
        from brain.common.schemas import Category, NewNote, Subcategory

        store, rec = make_store({("POST", "/v1/pages"): {"id": "new-page"}})
        note_id = await store.create(NewNote(
            content="Start a gym routine",
            category=Category.AREAS,
            subcategory=Subcategory.HEALTH,
            external_message_id="1.0",
            channel_id="C1",
            confidence=0.8,
            next_action="Book a gym trial",
            urls=["https://a.com", "https://b.com"],
        ))

        assert note_id == "new-page"
        _, _, body = rec.requests[0]
        assert body["parent"] == {"database_id": DB_ID}
        props = body["properties"]
        assert props["Status"] == {"select": {"name": "Open"}}
        assert props["Synced Status"] == {"select": {"name": "Open"}}
        assert props["Reminder Count"] == {"number": 0}
        assert props["Subcategory"] == {"select": {"name": "Health"}}
        assert props["Next Action"]["rich_text"][0]["text"]["content"] == "Book a gym trial"
        assert props["URLs"]["rich_text"][0]["text"]["content"] == "https://a.com, https://b.com"
        assert props["Slack Message ID"]["rich_text"][0]["text"]["content"] == "1.0"

    @pytest.mark.asyncio
    async def test_long_content_split_into_segments(self):
        from brain.common.schemas import Category, NewNote

        store, rec = make_store({("POST", "/v1/pages"): {"id": "p"}})
        await store.create(NewNote(
            content="x" * 4500, category=Category.RESOURCES, external_message_id="1.0",
        ))

        segments = rec.requests[0][2]["properties"]["Content"]["rich_text"]
        assert [len(s["text"]["content"]) for s in segments] == [2000, 2000, 500]


class TestLookup:
    @pytest.mark.asyncio
    async def test_exists_queries_by_message_id(self):
        store, rec = make_store({QUERY: {"results": [], "has_more": False}})

        assert await store.exists("1.0") is False
        body = rec.requests[0][2]
        assert body["filter"] == {"property": "Slack Message ID", "rich_text": {"equals": "1.0"}}
        assert body["page_size"] == 1

    @pytest.mark.asyncio
    async def test_find_parses_page(self):
        from brain.common.schemas import Category, NoteStatus

        segmented = {"rich_text": [{"plain_text": "first half "}, {"plain_text": "second half"}]}
        store, _ = make_store({QUERY: {"results": [page(Content=segmented)], "has_more": False}})

        note = await store.find_by_external_id("1700000000.000100")
        assert note.id == "page-1"
        assert note.content == "first half second half"
        assert note.category == Category.PROJECTS
        assert note.status == NoteStatus.OPEN
        assert note.channel_id == "C1"
        assert note.urls == []

    @pytest.mark.asyncio
    async def test_missing_optional_properties_read_as_absent(self):
        from brain.common.schemas import Category, NoteStatus

        bare = {
            "object": "page",
            "id": "old",
            "created_time": "2023-01-01T00:00:00.000Z",
            "properties": {
                "Slack Message ID": rich("9.0"),
                "Category": {"select": {"name": "NotACategory"}},
                "Reminder Count": {"number": None},
            },
        }
        store, _ = make_store({QUERY: {"results": [bare], "has_more": False}})

        note = await store.find_by_external_id("9.0")
        assert note.category == Category.UNCATEGORIZED
        assert note.status == NoteStatus.OPEN
        assert note.synced_status is None
        assert note.reminder_count == 0
        assert note.next_action is None
        assert note.created_at.year == 2023


class TestMutations:
    @pytest.mark.asyncio
    async def test_append_reads_then_writes(self):
        from brain.store.base import APPEND_SEPARATOR

        store, rec = make_store({
            ("GET", "/v1/pages/page-1"): page(content="A"),
            ("PATCH", "/v1/pages/page-1"): {"id": "page-1"},
        })

        await store.append_content("page-1", "B")

        method, _, body = rec.requests[1]
        assert method == "PATCH"
        assert body["properties"]["Content"]["rich_text"][0]["text"]["content"] == f"A{APPEND_SEPARATOR}B"

    @pytest.mark.asyncio
    async def test_append_records_reply_id(self):
        store, rec = make_store({
            ("GET", "/v1/pages/page-1"): page(content="A", **{"Appended Replies": rich("1.0")}),
            ("PATCH", "/v1/pages/page-1"): {"id": "page-1"},
        })

        assert await store.append_content("page-1", "B", reply_id="2.0") is True

        written = rec.requests[1][2]["properties"]["Appended Replies"]
        assert written["rich_text"][0]["text"]["content"] == "1.0, 2.0"

    @pytest.mark.asyncio
    async def test_append_of_known_reply_id_writes_nothing(self):
        store, rec = make_store({
            ("GET", "/v1/pages/page-1"): page(content="A", **{"Appended Replies": rich("1.0, 2.0")}),
            ("PATCH", "/v1/pages/page-1"): {"id": "page-1"},
        })

        assert await store.append_content("page-1", "B", reply_id="2.0") is False
        assert [method for method, _, _ in rec.requests] == ["GET"]

    @pytest.mark.asyncio
    async def test_archive(self):
        store, rec = make_store({("PATCH", "/v1/pages/page-1"): {"id": "page-1"}})
        await store.archive("page-1")
        assert rec.requests[0][2] == {"archived": True}

    @pytest.mark.asyncio
    async def test_set_status_and_synced_status(self):
        from brain.common.schemas import NoteStatus

        store, rec = make_store({("PATCH", "/v1/pages/page-1"): {"id": "page-1"}})
        await store.set_status("page-1", NoteStatus.DONE)
        await store.set_synced_status("page-1", NoteStatus.DONE)

        assert rec.requests[0][2] == {"properties": {"Status": {"select": {"name": "Done"}}}}
        assert rec.requests[1][2] == {"properties": {"Synced Status": {"select": {"name": "Done"}}}}


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_keeps_only_own_database(self):
        other = page(page_id="foreign")
        other["parent"] = {"type": "database_id", "database_id": "ffffffff-0000-0000-0000-000000000000"}
        loose = page(page_id="loose")
        loose["parent"] = {"type": "page_id", "page_id": "abc"}
        mine = page(page_id="mine")
        mine["parent"] = {"type": "database_id", "database_id": DB_ID.replace("-", "")}

        store, rec = make_store({("POST", "/v1/search"): {"results": [other, loose, mine]}})
        results = await store.search("dentist", limit=5)

        assert [n.id for n in results] == ["mine"]
        body = rec.requests[0][2]
        assert body["query"] == "dentist"
        assert body["page_size"] == 10


class TestDriftQuery:
    @pytest.mark.asyncio
    async def test_drift_filters_client_side(self):
        pages = [
            page("done-new", Status=select("Done"), **{"Synced Status": select("Open")}),
            page("done-synced", Status=select("Done"), **{"Synced Status": select("Done")}),
            page("reopened", Status=select("Open"), **{"Synced Status": select("Done")}),
            page("parked", Status=select("Parked"), **{"Synced Status": select("Done")}),
        ]
        store, rec = make_store({QUERY: {"results": pages, "has_more": False}})

        drift = await store.list_status_drift(limit=20)

        assert [n.id for n in drift] == ["done-new", "reopened"]
        assert "or" in rec.requests[0][2]["filter"]

    @pytest.mark.asyncio
    async def test_query_follows_cursor(self):
        responses = iter([
            {"results": [page("a")], "has_more": True, "next_cursor": "cur"},
            {"results": [page("b")], "has_more": False, "next_cursor": None},
        ])
        store, rec = make_store({QUERY: lambda body: next(responses)})

        notes = await store.list_reminder_candidates(limit=10)

        assert [n.id for n in notes] == []  # no next action on these pages
        assert rec.requests[1][2]["start_cursor"] == "cur"

    @pytest.mark.asyncio
    async def test_reminder_candidates_read_every_page(self):
        action = {"Next Action": rich("Call the dentist")}
        responses = iter(
            [{"results": [page(f"p{i}", **action)], "has_more": True, "next_cursor": f"c{i}"} for i in range(7)]
            + [{"results": [page("last", **action)], "has_more": False, "next_cursor": None}]
        )
        store, rec = make_store({QUERY: lambda body: next(responses)})

        notes = await store.list_reminder_candidates()

        assert len(notes) == 8
        assert notes[-1].id == "last"
        assert all(body["page_size"] == 100 for _, _, body in rec.requests)


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_status_raises_store_error(self):
        from brain.store.base import NoteStoreError

        store, _ = make_store({QUERY: httpx.Response(401, json={"message": "API token is invalid."})})
        with pytest.raises(NoteStoreError, match="401"):
            await store.exists("1.0")

    @pytest.mark.asyncio
    async def test_transport_error_raises_store_error(self):
        from brain.store.base import NoteStoreError

        def boom(body):
            raise httpx.ConnectError("connection refused")

        store, _ = make_store({QUERY: boom})
        with pytest.raises(NoteStoreError):
            await store.exists("1.0")


class TestEnsureReady:
    @pytest.mark.asyncio
    async def test_adds_missing_properties_except_title(self):
        existing = {"Name": {"type": "title", "title": {}}, "Content": {"type": "rich_text"}}
        store, rec = make_store({
            ("GET", f"/v1/databases/{DB_ID}"): {"id": DB_ID, "properties": existing},
            ("PATCH", f"/v1/databases/{DB_ID}"): {"id": DB_ID},
        })

        await store.ensure_ready()
        await store.ensure_ready()

        patches = [r for r in rec.requests if r[0] == "PATCH"]
        assert len(patches) == 1
        added = patches[0][2]["properties"]
        assert "Title" not in added
        assert "Content" not in added
        assert "Synced Status" in added
        assert "Reminder Count" in added

    @pytest.mark.asyncio
    async def test_schema_failure_is_logged_not_raised(self, caplog):
        store, _ = make_store({})
        await store.ensure_ready()
        assert "Failed to validate/update database schema" in caplog.text

    @pytest.mark.asyncio
    async def test_creates_database_under_parent(self):
        store, rec = make_store(
            {("POST", "/v1/databases"): {"id": "created-db"}},
            database_id="",
            parent_page_id="parent-page",
        )

        await store.ensure_ready()

        assert store.database_id == "created-db"
        body = rec.requests[0][2]
        assert body["parent"] == {"type": "page_id", "page_id": "parent-page"}
        assert body["title"][0]["text"]["content"] == "Brain Captures"

    @pytest.mark.asyncio
    async def test_requires_database_or_parent(self):
        from brain.store.base import NoteStoreError

        store, _ = make_store({}, database_id="")
        with pytest.raises(NoteStoreError):
            await store.ensure_ready()
