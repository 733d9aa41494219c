"""
Debounced asynchronous search with superseded-result protection.

A lookup is issued only after the input has been idle for the debounce
window; each keystroke cancels the pending timer. Every issued request is
tagged with a generation number, and a response is applied only if it is
still the latest issued request for the current text. Requests already in
flight are not cancelled, their results are dropped on arrival.

Usage:
    lookup = DebouncedLookup(search_vehicles_by_phone)
    lookup.update("733")
    lookup.update("7338")        # first timer cancelled
    await lookup.wait_idle()
    lookup.results               # results for "7338" only
"""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from booking_engine.config import settings
from booking_engine.logging_context import get_session_logger

logger = get_session_logger(__name__)

T = TypeVar("T")


class DebouncedLookup(Generic[T]):
    """Session-scoped debounced lookup for one input field."""

    def __init__(
        self,
        search: Callable[[str], Awaitable[list[T]]],
        debounce_ms: Optional[int] = None,
        min_length: Optional[int] = None,
        on_results: Optional[Callable[[list[T]], None]] = None,
    ) -> None:
        self._search = search
        self._debounce = (
            debounce_ms if debounce_ms is not None else settings.lookup.phone_search_debounce_ms
        ) / 1000
        self._min_length = (
            min_length if min_length is not None else settings.lookup.min_phone_search_length
        )
        self._on_results = on_results
        self._query = ""
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()
        self._suppress_next = False
        self._disposed = False
        self.results: list[T] = []
        self.loading = False

    @property
    def query(self) -> str:
        return self._query

    @property
    def generation(self) -> int:
        """Number of requests issued so far."""
        return self._generation

    @property
    def disposed(self) -> bool:
        return self._disposed

    def suppress_next(self) -> None:
        """Skip the search for the next update, e.g. after picking a result."""
        self._suppress_next = True

    def update(self, query: str) -> None:
        """Record new input text and (re)start the debounce timer."""
        if self._disposed:
            return
        self._cancel_timer()
        self._query = query

        if self._suppress_next:
            self._suppress_next = False
            return
        if len(query.strip()) < self._min_length:
            self.results = []
            self.loading = False
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, lookup for %r not scheduled", query)
            return
        self._timer = loop.create_task(self._debounced(query))

    async def _debounced(self, query: str) -> None:
        await asyncio.sleep(self._debounce)
        self._timer = None
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self._request(query, self._generation))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _request(self, query: str, generation: int) -> None:
        self.loading = True
        try:
            results = await self._search(query)
        except Exception:
            logger.warning("Lookup for %r failed", query, exc_info=True)
            results = []

        if generation == self._generation:
            self.loading = False
        if self._disposed or generation != self._generation or query != self._query:
            logger.debug(
                "Discarding lookup result for %r (generation %d, latest %d)",
                query, generation, self._generation,
            )
            return

        self.results = results
        if self._on_results is not None:
            self._on_results(results)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def wait_idle(self) -> None:
        """Wait for the pending timer and every in-flight request to settle."""
        while self._timer is not None or self._in_flight:
            pending = [t for t in [self._timer, *self._in_flight] if t is not None]
            await asyncio.gather(*pending, return_exceptions=True)

    def dispose(self) -> None:
        """Stop for good: cancel the timer and ignore every later result."""
        self._disposed = True
        self._cancel_timer()
        self.loading = False
