"""
Search Controller

Debounced article search for the global search panel.

ORDERING GUARANTEE:
===================
Every issued query is tagged with a monotonically increasing sequence
number. A response is applied only if its sequence is still the latest
issued, so a slow response can never overwrite a newer one.
"""

from __future__ import annotations
from typing import Optional, Tuple
import itertools
import logging

from backend.api import ArticleApi, SystemApi
from backend.contracts import ApiError, Article

from .scheduling import AsyncioScheduler, Scheduler
from .timing import debounce

logger = logging.getLogger(__name__)


class SearchController:
    def __init__(
        self,
        articles: ArticleApi,
        system: SystemApi,
        scheduler: Optional[Scheduler] = None,
        debounce_ms: float = 300,
        limit: int = 5
    ):
        self._articles = articles
        self._system = system
        self._scheduler = scheduler or AsyncioScheduler()
        self._limit = limit
        self._sequence = itertools.count(1)
        self._latest = 0

        self.query = ""
        self.results: Tuple[Article, ...] = ()
        self.loading = False
        self.error: Optional[str] = None
        self.hot_searches: Tuple[str, ...] = ()

        self._debounced = debounce(self.search, debounce_ms, self._scheduler)

    def on_input(self, text: str) -> None:
        """Keystroke entry point; only the last input of a burst is searched."""
        self.query = text
        self._debounced(text)

    async def search(self, text: str) -> Tuple[Article, ...]:
        sequence = next(self._sequence)
        self._latest = sequence

        if not text.strip():
            self.results = ()
            self.loading = False
            self.error = None
            return self.results

        self.loading = True
        try:
            page = await self._articles.get_list(q=text, limit=self._limit)
        except ApiError as e:
            if sequence == self._latest:
                logger.warning("Search for %r failed: %s", text, e.message)
                self.error = e.message
                self.loading = False
            return self.results

        if sequence != self._latest:
            logger.debug("Discarding stale search #%d for %r", sequence, text)
            return self.results

        self.results = page.items
        self.error = None
        self.loading = False
        return self.results

    async def load_hot_searches(self) -> Tuple[str, ...]:
        try:
            self.hot_searches = tuple(await self._system.get_hot_searches())
        except ApiError as e:
            logger.warning("Loading hot searches failed: %s", e.message)
            self.error = e.message
        return self.hot_searches

    def reset(self) -> None:
        """Clear the panel and invalidate any request still in flight."""
        self._debounced.cancel()
        self._latest = next(self._sequence)
        self.query = ""
        self.results = ()
        self.loading = False
        self.error = None
