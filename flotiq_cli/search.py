"""
Interactive search over a single content type.

A SearchSession receives raw keystroke input and decides when to query the
API. The decision itself lives in evaluate_gate() so it can be checked
without a session:

- the trimmed text must be longer than MIN_QUERY_LENGTH characters
- input is cut to MAX_QUERY_LENGTH characters
- the trimmed length must differ from the previously accepted value
- no automatic query may already be running

A manual confirm() re-runs the last query when the gate was open, even while
another query is in flight. Searchable input that arrives while a query runs
is queried once that query finishes, so results catch up with the latest
text. Switching the content type queries immediately.
"""

import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from flotiq_cli.core.errors import ValidationError
from flotiq_cli.core.types import ContentObject, ContentType, SearchQuery

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 50
DEFAULT_CACHE_SIZE = 32

SearchFunc = Callable[[str, str], Awaitable[list[ContentObject]]]


@dataclass(frozen=True)
class GateDecision:
    """Outcome of evaluating one keystroke."""

    text: str
    should_query: bool
    limit_reached: bool = False


def is_searchable(text: str) -> bool:
    return len(text.strip()) > MIN_QUERY_LENGTH


def evaluate_gate(previous: str, candidate: str, in_flight: bool) -> GateDecision:
    """
    Decide whether a new input value should trigger a query.

    Args:
        previous: The last accepted input value
        candidate: The new raw input value
        in_flight: Whether a query is currently running

    Returns:
        GateDecision with the (truncated) text to keep

    """
    text = candidate[:MAX_QUERY_LENGTH]
    changed = abs(len(text.strip()) - len(previous.strip())) > 0
    return GateDecision(
        text=text,
        should_query=is_searchable(text) and changed and not in_flight,
        limit_reached=len(candidate) > MAX_QUERY_LENGTH,
    )


class SearchCache:
    """
    Read-through store of search results keyed by (content type, text).

    Holds at most max_entries queries, dropping the least recently used.
    The latest stored query is always kept.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_SIZE) -> None:
        self.max_entries = max(1, max_entries)
        self._results: OrderedDict[tuple[str, str], list[ContentObject]] = OrderedDict()
        self._latest: tuple[str, str] | None = None

    def __len__(self) -> int:
        return len(self._results)

    def get(self, query: SearchQuery) -> list[ContentObject] | None:
        results = self._results.get(query.cache_key)
        if results is not None:
            self._results.move_to_end(query.cache_key)
        return results

    def put(self, query: SearchQuery, results: list[ContentObject]) -> None:
        self._results[query.cache_key] = results
        self._results.move_to_end(query.cache_key)
        self._latest = query.cache_key
        while len(self._results) > self.max_entries:
            self._results.popitem(last=False)

    @property
    def latest(self) -> list[ContentObject] | None:
        """Results of the most recently stored query."""
        if self._latest is None:
            return None
        return self._results.get(self._latest)

    def clear(self) -> None:
        self._results.clear()
        self._latest = None


class SearchSession:
    """
    Drives search queries from user input.

    Example:
        async with FlotiqClient() as client:
            session = SearchSession(client.search, await client.content_types.list())
            await session.update("hello world")
            print(session.result_count)

    """

    def __init__(
        self,
        search: SearchFunc,
        content_types: Sequence[ContentType] = (),
        content_type: str | None = None,
        cache: SearchCache | None = None,
    ):
        self._search = search
        self.content_types = list(content_types)
        self.content_type = content_type or self._default_content_type()
        self.cache = cache or SearchCache()
        self.text = ""
        self.limit_reached = False
        self._armed = False
        self._pending = 0
        self._last_query: SearchQuery | None = None
        self._results: list[ContentObject] | None = None

    def _default_content_type(self) -> str:
        if self.content_types and self.content_types[0].name:
            return self.content_types[0].name
        return ""

    @property
    def in_flight(self) -> bool:
        return self._pending > 0

    @property
    def query(self) -> SearchQuery:
        return SearchQuery(self.content_type, self.text)

    @property
    def results(self) -> list[ContentObject] | None:
        """Current results, falling back to the last cached ones."""
        if self._results is not None:
            return self._results
        cached = self.cache.get(self.query)
        return cached if cached is not None else self.cache.latest

    @property
    def result_count(self) -> int:
        return len(self.results or [])

    @property
    def can_show_results(self) -> bool:
        return bool(self.results) and not self.in_flight

    async def update(self, raw_text: str) -> list[ContentObject] | None:
        """
        Handle a new input value.

        Returns:
            Fresh results when a query ran, otherwise None

        """
        decision = evaluate_gate(self.text, raw_text, self.in_flight)
        self.limit_reached = decision.limit_reached
        self.text = decision.text

        if decision.should_query:
            self._armed = True
            return await self._run()
        # While a query runs, searchable input is picked up when it finishes.
        self._armed = self.in_flight and is_searchable(self.text)
        return None

    async def confirm(self) -> list[ContentObject] | None:
        """Re-run the query on explicit request, if the gate was open."""
        if not self._armed:
            return None
        return await self._run()

    async def select_content_type(self, name: str) -> list[ContentObject] | None:
        """Switch content type and query right away."""
        self.content_type = name
        self._armed = True
        if not is_searchable(self.text):
            return None
        return await self._run()

    async def _run(self) -> list[ContentObject]:
        query = self.query
        if not query.content_type_name:
            raise ValidationError("No content type selected")

        logger.debug("Searching %s for %r", query.content_type_name, query.text)
        self._last_query = query
        self._pending += 1
        try:
            results = await self._search(query.content_type_name, query.text)
        finally:
            self._pending -= 1

        self.cache.put(query, results)
        if query.cache_key == self._last_query.cache_key:
            self._results = results
        if self._input_changed_while_running():
            logger.debug("Input changed during search, querying %r", self.query.text)
            return await self._run()
        return results

    def _input_changed_while_running(self) -> bool:
        return (
            not self.in_flight
            and self._armed
            and is_searchable(self.text)
            and self._last_query is not None
            and self.query.cache_key != self._last_query.cache_key
        )
