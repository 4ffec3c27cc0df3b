"""Tests for the URL registry: create-or-reuse, sequential ids and resolution."""

import asyncio

import pytest

from shorturl.core.exceptions import DatabaseError, ShortIdNotFoundError
from shorturl.core.validators import MAX_SHORT_ID
from shorturl.db.models import UrlMapping
from shorturl.services.registry import UrlRegistry


@pytest.mark.asyncio
class TestCreateOrGet:
    """Test idempotent creation and identifier assignment."""

    async def test_first_url_gets_id_one(self, session):
        registry = UrlRegistry(session)
        mapping = await registry.create_or_get("https://example.com/test")

        assert mapping.short_id == 1
        assert mapping.original_url == "https://example.com/test"
        assert mapping.created_at is not None

    async def test_same_url_twice_reuses_id(self, session):
        registry = UrlRegistry(session)
        first = await registry.create_or_get("https://example.com/test")
        second = await registry.create_or_get("https://example.com/test")

        assert first.short_id == second.short_id
        assert await registry.count() == 1

    async def test_reuse_consumes_no_id(self, session, sample_urls):
        registry = UrlRegistry(session)
        await registry.create_or_get(sample_urls[0])
        await registry.create_or_get(sample_urls[0])
        mapping = await registry.create_or_get(sample_urls[1])

        assert mapping.short_id == 2

    async def test_sequential_ids_follow_submission_order(self, session):
        registry = UrlRegistry(session)
        urls = [f"https://example.com/page/{i}" for i in range(10)]

        ids = [(await registry.create_or_get(url)).short_id for url in urls]

        assert ids == list(range(1, 11))
        assert await registry.count() == 10

    async def test_exact_string_comparison(self, session):
        registry = UrlRegistry(session)
        plain = await registry.create_or_get("https://example.com")
        slash = await registry.create_or_get("https://example.com/")

        assert plain.short_id != slash.short_id

    async def test_reuse_across_sessions(self, session_maker):
        async with session_maker() as first_session:
            created = await UrlRegistry(first_session).create_or_get("https://example.com/a")
        async with session_maker() as second_session:
            reused = await UrlRegistry(second_session).create_or_get("https://example.com/a")

        assert reused.short_id == created.short_id == 1

    async def test_concurrent_distinct_urls_get_distinct_ids(self, session_maker):
        """N concurrent creations yield exactly 1..N with no duplicates or gaps."""
        concurrency = 25
        urls = [f"https://example.com/concurrent/{i}" for i in range(concurrency)]

        async def create(url):
            async with session_maker() as own_session:
                mapping = await UrlRegistry(own_session).create_or_get(url)
                return mapping.original_url, mapping.short_id

        results = await asyncio.gather(*(create(url) for url in urls))

        ids = sorted(short_id for _, short_id in results)
        assert ids == list(range(1, concurrency + 1))
        assert {url for url, _ in results} == set(urls)

    async def test_concurrent_same_url_gets_one_id(self, session_maker):
        async def create():
            async with session_maker() as own_session:
                return (await UrlRegistry(own_session).create_or_get("https://example.com/same")).short_id

        ids = await asyncio.gather(*(create() for _ in range(10)))

        assert set(ids) == {1}
        async with session_maker() as check_session:
            assert await UrlRegistry(check_session).count() == 1

    async def test_conflict_from_another_writer_is_retried(self, session, session_maker):
        """A writer outside this process claims the computed id first."""

        class RacingRegistry(UrlRegistry):
            raced = False

            async def _next_short_id(self):
                short_id = await super()._next_short_id()
                if not self.raced:
                    self.raced = True
                    async with session_maker() as other_session:
                        other_session.add(UrlMapping(original_url="https://other.example.com", short_id=short_id))
                        await other_session.commit()
                return short_id

        mapping = await RacingRegistry(session).create_or_get("https://example.com/mine")

        assert mapping.short_id == 2
        assert await UrlRegistry(session).resolve(1) == "https://other.example.com"

    async def test_conflict_on_same_url_returns_other_writers_mapping(self, session, session_maker):
        class RacingRegistry(UrlRegistry):
            raced = False

            async def _next_short_id(self):
                short_id = await super()._next_short_id()
                if not self.raced:
                    self.raced = True
                    async with session_maker() as other_session:
                        other_session.add(UrlMapping(original_url="https://example.com/shared", short_id=short_id))
                        await other_session.commit()
                    return short_id + 1
                return short_id

        mapping = await RacingRegistry(session).create_or_get("https://example.com/shared")

        assert mapping.short_id == 1
        assert await UrlRegistry(session).count() == 1

    async def test_gives_up_after_max_retries(self, session):
        await UrlRegistry(session).create_or_get("https://example.com/one")

        class StuckRegistry(UrlRegistry):
            attempts = 0

            async def _next_short_id(self):
                self.attempts += 1
                return 1

        registry = StuckRegistry(session, max_retries=3)
        with pytest.raises(DatabaseError):
            await registry.create_or_get("https://example.com/two")
        assert registry.attempts == 3

    async def test_zero_retries_is_respected(self, session):
        registry = UrlRegistry(session, max_retries=0)

        assert registry.max_retries == 0
        with pytest.raises(DatabaseError):
            await registry.create_or_get("https://example.com")
        assert await UrlRegistry(session).count() == 0

    async def test_storage_failure_raises_database_error(self, broken_session_maker):
        async with broken_session_maker() as broken_session:
            with pytest.raises(DatabaseError) as exc_info:
                await UrlRegistry(broken_session).create_or_get("https://example.com")
        assert exc_info.value.original_error is not None


@pytest.mark.asyncio
class TestResolve:
    """Test identifier to URL resolution."""

    async def test_resolve_round_trip(self, session, sample_urls):
        registry = UrlRegistry(session)
        for url in sample_urls:
            mapping = await registry.create_or_get(url)
            assert await registry.resolve(mapping.short_id) == url

    async def test_resolve_miss_on_empty_registry(self, session):
        with pytest.raises(ShortIdNotFoundError) as exc_info:
            await UrlRegistry(session).resolve(999999)
        assert exc_info.value.short_id == 999999

    async def test_resolve_zero_is_not_found(self, session):
        await UrlRegistry(session).create_or_get("https://example.com")
        with pytest.raises(ShortIdNotFoundError):
            await UrlRegistry(session).resolve(0)

    async def test_resolve_beyond_column_range_is_not_found(self, broken_session_maker):
        # Answered without touching the store
        async with broken_session_maker() as broken_session:
            with pytest.raises(ShortIdNotFoundError):
                await UrlRegistry(broken_session).resolve(MAX_SHORT_ID + 1)

    async def test_resolve_largest_id_is_not_found(self, session):
        with pytest.raises(ShortIdNotFoundError):
            await UrlRegistry(session).resolve(MAX_SHORT_ID)

    async def test_resolve_has_no_side_effects(self, session):
        registry = UrlRegistry(session)
        await registry.create_or_get("https://example.com")
        with pytest.raises(ShortIdNotFoundError):
            await registry.resolve(5)
        assert await registry.count() == 1

    async def test_storage_failure_raises_database_error(self, broken_session_maker):
        async with broken_session_maker() as broken_session:
            registry = UrlRegistry(broken_session)
            with pytest.raises(DatabaseError):
                await registry.resolve(1)
            with pytest.raises(DatabaseError):
                await registry.count()
