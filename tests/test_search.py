"""Tests for the search gate and SearchSession."""

import asyncio

import pytest

from flotiq_cli.core.errors import ValidationError
from flotiq_cli.core.types import ContentObject, ContentType, SearchQuery
from flotiq_cli.search import MAX_QUERY_LENGTH, SearchCache, SearchSession, evaluate_gate


class FakeSearch:
    """Records calls; optionally blocks until released."""

    def __init__(self, block: bool = False):
        self.calls: list[tuple[str, str]] = []
        self.release = asyncio.Event()
        if not block:
            self.release.set()

    async def __call__(self, content_type_name: str, text: str) -> list[ContentObject]:
        self.calls.append((content_type_name, text))
        await self.release.wait()
        return [ContentObject(id=f"{content_type_name}:{text}")]


CONTENT_TYPES = [ContentType(id="blogpost", name="blogpost"), ContentType(id="product", name="product")]


class TestEvaluateGate:
    @pytest.mark.parametrize("candidate", ["", "   ", "a", "abc", "  abc  "])
    def test_short_input_blocked(self, candidate):
        assert evaluate_gate("", candidate, in_flight=False).should_query is False

    def test_four_chars_allowed(self):
        decision = evaluate_gate("", "abcd", in_flight=False)
        assert decision.should_query is True
        assert decision.text == "abcd"

    def test_unchanged_trimmed_length_blocked(self):
        assert evaluate_gate("abcd", "abce", in_flight=False).should_query is False
        assert evaluate_gate("abcd", " abcd ", in_flight=False).should_query is False

    def test_in_flight_blocked(self):
        assert evaluate_gate("abcd", "abcde", in_flight=True).should_query is False

    def test_long_input_truncated_not_rejected(self):
        decision = evaluate_gate("", "x" * 60, in_flight=False)
        assert decision.text == "x" * MAX_QUERY_LENGTH
        assert decision.limit_reached is True
        assert decision.should_query is True

    def test_exactly_max_length_not_flagged(self):
        decision = evaluate_gate("", "x" * MAX_QUERY_LENGTH, in_flight=False)
        assert decision.limit_reached is False

    def test_growing_past_limit_stops_querying(self):
        previous = "x" * MAX_QUERY_LENGTH
        assert evaluate_gate(previous, previous + "yyy", in_flight=False).should_query is False


class TestSearchCache:
    def test_latest_and_lookup(self):
        cache = SearchCache()
        first, second = SearchQuery("blogpost", "abcd"), SearchQuery("blogpost", " efgh ")
        cache.put(first, [ContentObject(id="1")])
        cache.put(second, [])

        assert cache.get(SearchQuery("blogpost", "abcd ")) == [ContentObject(id="1")]
        assert cache.latest == []
        cache.clear()
        assert cache.latest is None

    def test_drops_least_recently_used(self):
        cache = SearchCache(max_entries=2)
        first, second, third = (SearchQuery("blogpost", text) for text in ("aaaa", "bbbb", "cccc"))
        cache.put(first, [ContentObject(id="1")])
        cache.put(second, [ContentObject(id="2")])
        cache.get(first)
        cache.put(third, [ContentObject(id="3")])

        assert len(cache) == 2
        assert cache.get(second) is None
        assert cache.get(first) == [ContentObject(id="1")]
        assert cache.latest == [ContentObject(id="3")]


class TestSearchSession:
    async def test_default_content_type_is_first(self):
        session = SearchSession(FakeSearch(), CONTENT_TYPES)
        assert session.content_type == "blogpost"

    async def test_short_input_never_calls_client(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        for text in ["", "   ", "h", "he", "hel", " hel "]:
            assert await session.update(text) is None
        assert search.calls == []
        assert session.results is None

    async def test_query_runs_with_trimmed_text(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        results = await session.update("  hello ")

        assert search.calls == [("blogpost", "hello")]
        assert results == [ContentObject(id="blogpost:hello")]
        assert session.result_count == 1
        assert session.can_show_results is True

    async def test_same_length_edit_does_not_requery(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("hello")
        await session.update("hellp")
        assert search.calls == [("blogpost", "hello")]

    async def test_confirm_requeries_when_armed(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("hello")
        await session.confirm()
        assert search.calls == [("blogpost", "hello"), ("blogpost", "hello")]

    async def test_confirm_does_nothing_when_gate_closed(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("hel")
        assert await session.confirm() is None
        assert search.calls == []

    async def test_confirm_disarmed_after_blocked_update(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("hello")
        await session.update("hellp")
        assert await session.confirm() is None
        assert len(search.calls) == 1

    async def test_no_automatic_query_while_in_flight(self):
        search = FakeSearch(block=True)
        session = SearchSession(search, CONTENT_TYPES)

        first = asyncio.create_task(session.update("hello"))
        await asyncio.sleep(0)
        assert session.in_flight is True

        assert await session.update("hello world") is None
        assert search.calls == [("blogpost", "hello")]

        search.release.set()
        await first
        assert session.in_flight is False

    async def test_input_during_query_is_searched_afterwards(self):
        search = FakeSearch(block=True)
        session = SearchSession(search, CONTENT_TYPES)

        first = asyncio.create_task(session.update("hello"))
        await asyncio.sleep(0)
        assert await session.update("hello world") is None

        search.release.set()
        assert await first == [ContentObject(id="blogpost:hello world")]
        assert search.calls == [("blogpost", "hello"), ("blogpost", "hello world")]
        assert session.results == [ContentObject(id="blogpost:hello world")]
        assert session.in_flight is False

        assert await session.confirm() == [ContentObject(id="blogpost:hello world")]
        assert len(search.calls) == 3

    async def test_short_input_during_query_is_not_searched_afterwards(self):
        search = FakeSearch(block=True)
        session = SearchSession(search, CONTENT_TYPES)

        first = asyncio.create_task(session.update("hello"))
        await asyncio.sleep(0)
        await session.update("he")

        search.release.set()
        await first
        assert search.calls == [("blogpost", "hello")]
        assert await session.confirm() is None

    async def test_manual_confirm_allowed_while_in_flight(self):
        search = FakeSearch(block=True)
        session = SearchSession(search, CONTENT_TYPES)

        first = asyncio.create_task(session.update("hello"))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.confirm())
        await asyncio.sleep(0)
        assert len(search.calls) == 2

        search.release.set()
        await asyncio.gather(first, second)
        assert session.in_flight is False

    async def test_select_content_type_queries_immediately(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("hello")
        results = await session.select_content_type("product")

        assert search.calls[-1] == ("product", "hello")
        assert results == [ContentObject(id="product:hello")]

    async def test_select_content_type_with_short_text_waits(self):
        search = FakeSearch()
        session = SearchSession(search, CONTENT_TYPES)
        await session.update("he")
        assert await session.select_content_type("product") is None
        assert search.calls == []

    async def test_results_fall_back_to_shared_cache(self):
        cache = SearchCache()
        cache.put(SearchQuery("blogpost", "older"), [ContentObject(id="x")])
        session = SearchSession(FakeSearch(), CONTENT_TYPES, cache=cache)
        assert session.results == [ContentObject(id="x")]

    async def test_limit_reached_flag(self):
        session = SearchSession(FakeSearch(), CONTENT_TYPES)
        await session.update("y" * 70)
        assert session.limit_reached is True
        assert session.text == "y" * MAX_QUERY_LENGTH

    async def test_no_content_type_rejected(self):
        session = SearchSession(FakeSearch())
        with pytest.raises(ValidationError):
            await session.update("hello")
