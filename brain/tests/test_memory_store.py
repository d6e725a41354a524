"""Tests for InMemoryNoteStore."""

from datetime import datetime, timezone

import pytest


def new_note(ts="1.0", content="Need to call the dentist tomorrow", **kwargs):
    from brain.common.schemas import Category, NewNote

    fields = dict(
        content=content,
        category=Category.PROJECTS,
        external_message_id=ts,
        channel_id="C1",
        confidence=0.9,
    )
    fields.update(kwargs)
    return NewNote(**fields)


class TestCreateAndFind:
    @pytest.mark.asyncio
    async def test_create_sets_open_statuses(self, store):
        from brain.common.schemas import NoteStatus

        note_id = await store.create(new_note())
        note = store.get(note_id)

        assert note.status == NoteStatus.OPEN
        assert note.synced_status == NoteStatus.OPEN
        assert note.reminder_count == 0
        assert note.title == "Need to call the dentist tomorrow"

    @pytest.mark.asyncio
    async def test_exists_and_find(self, store):
        await store.create(new_note("5.5"))

        assert await store.exists("5.5")
        assert not await store.exists("6.6")
        found = await store.find_by_external_id("5.5")
        assert found is not None and found.channel_id == "C1"
        assert await store.find_by_external_id("6.6") is None

    @pytest.mark.asyncio
    async def test_returned_notes_are_copies(self, store):
        note_id = await store.create(new_note())
        found = await store.find_by_external_id("1.0")
        found.content = "mutated"
        assert store.get(note_id).content == "Need to call the dentist tomorrow"


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_order_with_separator(self, store):
        from brain.store.base import APPEND_SEPARATOR

        note_id = await store.create(new_note(content="A"))
        await store.append_content(note_id, "B")
        await store.append_content(note_id, "C")

        assert store.get(note_id).content == f"A{APPEND_SEPARATOR}B{APPEND_SEPARATOR}C"

    @pytest.mark.asyncio
    async def test_append_is_once_per_reply_id(self, store):
        from brain.store.base import APPEND_SEPARATOR

        note_id = await store.create(new_note(content="A"))

        assert await store.append_content(note_id, "B", reply_id="2.0") is True
        assert await store.append_content(note_id, "B", reply_id="2.0") is False
        assert await store.append_content(note_id, "C", reply_id="3.0") is True

        note = store.get(note_id)
        assert note.content == f"A{APPEND_SEPARATOR}B{APPEND_SEPARATOR}C"
        assert note.appended_reply_ids == ["2.0", "3.0"]

    @pytest.mark.asyncio
    async def test_append_to_unknown_note_raises(self, store):
        from brain.store.base import NoteStoreError

        with pytest.raises(NoteStoreError):
            await store.append_content("nope", "B")


class TestArchive:
    @pytest.mark.asyncio
    async def test_archived_note_is_invisible(self, store):
        note_id = await store.create(new_note("7.0"))
        await store.archive(note_id)

        assert not await store.exists("7.0")
        assert await store.find_by_external_id("7.0") is None
        assert store.is_archived(note_id)

    @pytest.mark.asyncio
    async def test_recreate_after_archive_gets_new_id(self, store):
        first = await store.create(new_note("7.0"))
        await store.archive(first)
        second = await store.create(new_note("7.0"))

        assert second != first
        assert (await store.find_by_external_id("7.0")).id == second


class TestQueries:
    @pytest.mark.asyncio
    async def test_search_matches_tokens(self, store):
        await store.create(new_note("1.0", content="Find new dentists near the office"))
        await store.create(new_note("2.0", content="Buy groceries"))

        results = await store.search("what did I save about dentists?", limit=10)
        assert [n.external_message_id for n in results] == ["1.0"]

    @pytest.mark.asyncio
    async def test_search_limit_validated(self, store):
        with pytest.raises(ValueError):
            await store.search("x", limit=0)
        with pytest.raises(ValueError):
            await store.search("x", limit=51)

    @pytest.mark.asyncio
    async def test_list_with_urls_only_open(self, store):
        from brain.common.schemas import NoteStatus

        a = await store.create(new_note("1.0", urls=["https://a.com"]))
        await store.create(new_note("2.0"))
        c = await store.create(new_note("3.0", urls=["https://c.com"]))
        await store.set_status(c, NoteStatus.DONE)

        assert [n.id for n in await store.list_with_urls()] == [a]

    @pytest.mark.asyncio
    async def test_reminder_candidates(self, store):
        from brain.common.schemas import NoteStatus

        a = await store.create(new_note("1.0", next_action="Call the dentist"))
        await store.create(new_note("2.0"))
        c = await store.create(new_note("3.0", next_action="Buy milk"))
        await store.set_status(c, NoteStatus.PARKED)

        assert [n.id for n in await store.list_reminder_candidates()] == [a]

    @pytest.mark.asyncio
    async def test_status_drift_only_meaningful_transitions(self, store):
        from brain.common.schemas import NoteStatus

        done = await store.create(new_note("1.0"))
        await store.set_status(done, NoteStatus.DONE)

        reopened = await store.create(new_note("2.0"))
        await store.set_synced_status(reopened, NoteStatus.DONE)

        parked = await store.create(new_note("3.0"))
        await store.set_status(parked, NoteStatus.PARKED)

        await store.create(new_note("4.0"))

        drift = {n.id for n in await store.list_status_drift()}
        assert drift == {done, reopened}

    @pytest.mark.asyncio
    async def test_update_reminder_meta(self, store):
        note_id = await store.create(new_note())
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        await store.update_reminder_meta(note_id, when, 3)

        note = store.get(note_id)
        assert note.last_reminder_at == when
        assert note.reminder_count == 3

        with pytest.raises(ValueError):
            await store.update_reminder_meta(note_id, when, -1)
