"""
Vault API Backend: VaultStore Tests
====================================

What:  The persistence gateway against a real SQLite database.

What we test:
    ✅ Insert/find/update/delete round trip, tags keep their order
    ✅ Search is a case-insensitive literal substring match, tags included
    ✅ Category and tag aggregation ordering
    ✅ Malformed ids are store failures, unknown ids are None
"""

import uuid

import pytest

from vault_api.exceptions import StoreOperationFailed
from vault_api.models.vault_entry import VaultEntry
from vault_api.schemas.vault import SortField, SortOrder
from vault_api.services.store import escape_like


class TestWrites:

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_defaults(self, store):
        entry = await store.insert_one({"name": " A ", "content": "x"})

        assert isinstance(entry.id, uuid.UUID)
        assert entry.name == "A"
        assert entry.category == "general"
        assert entry.tags == []
        assert entry.created_at == entry.updated_at

    @pytest.mark.asyncio
    async def test_tags_keep_their_order(self, store):
        created = await store.insert_one(
            {"name": "A", "content": "x", "tags": ["zeta", "alpha", "mid"]}
        )
        fetched = await store.find_by_id(str(created.id))
        assert fetched.tags == ["zeta", "alpha", "mid"]

    @pytest.mark.asyncio
    async def test_update_changes_only_supplied_fields(self, store):
        created = await store.insert_one(
            {"name": "A", "content": "x", "category": "work", "tags": ["one"]}
        )

        updated = await store.update_by_id(str(created.id), {"content": "y"})

        assert updated.id == created.id
        assert updated.name == "A"
        assert updated.content == "y"
        assert updated.category == "work"
        assert updated.tags == ["one"]
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_update_replaces_tags(self, store):
        created = await store.insert_one({"name": "A", "content": "x", "tags": ["a", "b"]})

        await store.update_by_id(str(created.id), {"tags": ["c"]})

        fetched = await store.find_by_id(str(created.id))
        assert fetched.tags == ["c"]
        assert await store.tag_frequencies() == [("c", 1)]

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_none(self, store):
        assert await store.update_by_id(str(uuid.uuid4()), {"content": "y"}) is None

    @pytest.mark.asyncio
    async def test_delete_returns_last_state_and_removes_tags(self, store):
        created = await store.insert_one({"name": "A", "content": "x", "tags": ["t"]})

        deleted = await store.delete_by_id(str(created.id))

        assert deleted == created
        assert await store.find_by_id(str(created.id)) is None
        assert await store.tag_frequencies() == []

    @pytest.mark.asyncio
    async def test_delete_unknown_id_returns_none(self, store):
        assert await store.delete_by_id(str(uuid.uuid4())) is None

    @pytest.mark.asyncio
    async def test_constraint_violation_is_a_store_failure(self, store):
        # No name: the NOT NULL constraint rejects the row at flush
        with pytest.raises(StoreOperationFailed) as excinfo:
            await store.insert_one({"content": "x"})

        assert excinfo.value.context["error_type"] == "IntegrityError"
        assert await store.count() == 0


class TestReads:

    @pytest.mark.asyncio
    async def test_malformed_id_is_a_store_failure(self, store):
        with pytest.raises(StoreOperationFailed):
            await store.find_by_id("not-a-uuid")

    @pytest.mark.asyncio
    async def test_find_all_sorted_by_name(self, store):
        for name in ("banana", "Apple", "cherry"):
            await store.insert_one({"name": name, "content": "x"})

        entries = await store.find_all(sort=(SortField.NAME, SortOrder.ASC))
        names = [e.name for e in entries]
        assert names == sorted(names)

    @pytest.mark.asyncio
    async def test_find_all_limit(self, store):
        for name in ("a", "b", "c"):
            await store.insert_one({"name": name, "content": "x"})

        newest = await store.find_all(sort=(SortField.DATE, SortOrder.DESC), limit=1)
        assert [e.name for e in newest] == ["c"]

    @pytest.mark.asyncio
    async def test_count_with_criteria(self, store):
        await store.insert_one({"name": "a", "content": "x", "category": "work"})
        await store.insert_one({"name": "b", "content": "x"})

        assert await store.count() == 2
        assert await store.count(VaultEntry.category == "work") == 1


class TestSearch:

    @pytest.mark.asyncio
    async def test_matches_tag_case_insensitively(self, store):
        tagged = await store.insert_one({"name": "A", "content": "x", "tags": ["Foo"]})
        await store.insert_one({"name": "B", "content": "y"})

        results = await store.search("foo")
        assert [e.id for e in results] == [tagged.id]

    @pytest.mark.asyncio
    async def test_matches_each_text_field(self, store):
        by_name = await store.insert_one({"name": "Alpha", "content": "x"})
        by_content = await store.insert_one({"name": "B", "content": "the ALPHABET"})
        by_category = await store.insert_one({"name": "C", "content": "x", "category": "alpha"})
        await store.insert_one({"name": "D", "content": "nothing here"})

        results = await store.search("alpha")
        assert {e.id for e in results} == {by_name.id, by_content.id, by_category.id}

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, store):
        await store.insert_one({"name": "plain", "content": "x"})
        percent = await store.insert_one({"name": "100% done", "content": "x"})

        assert [e.id for e in await store.search("%")] == [percent.id]
        assert await store.search("_") == []

    def test_escape_like(self):
        assert escape_like("50%_a\\b") == "50\\%\\_a\\\\b"


class TestAggregation:

    @pytest.mark.asyncio
    async def test_aggregate_by_category(self, store):
        for category in ("general", "work", "general"):
            await store.insert_one({"name": "n", "content": "c", "category": category})

        groups = await store.aggregate_by_group(VaultEntry.category)
        assert groups == [("general", 2), ("work", 1)]

    @pytest.mark.asyncio
    async def test_tag_frequencies_limit_and_ties(self, store):
        await store.insert_one({"name": "a", "content": "x", "tags": ["b", "a", "c"]})
        await store.insert_one({"name": "b", "content": "x", "tags": ["c"]})

        assert await store.tag_frequencies(limit=2) == [("c", 2), ("a", 1)]

    @pytest.mark.asyncio
    async def test_storage_footprint_counts_characters(self, store):
        assert await store.storage_footprint() == 0
        await store.insert_one({"name": "ab", "content": "cde", "category": "f", "tags": ["gh"]})
        assert await store.storage_footprint() == 8
