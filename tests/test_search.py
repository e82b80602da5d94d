"""
Search Controller Tests
=======================

Verifies:
1. Keystroke bursts issue a single request for the final text
2. A slow response for an older query never overwrites a newer one
3. Blank input clears results without a request
4. Failures surface as ``error`` instead of raising from the background
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.contracts import Article, ArticlePage, NotFoundError
from frontend.search import SearchController


def page_for(*titles):
    items = tuple(
        Article(id=f"art-{i}", title=t, summary="", content="", category="Tech", date="2025-01-01")
        for i, t in enumerate(titles, start=1)
    )
    return ArticlePage.build(items, total=len(items), page=1, limit=5)


class GatedArticles:
    """Article facade whose responses are released by the test."""

    def __init__(self):
        self.gates = {}

    async def get_list(self, q=None, limit=None):
        gate = asyncio.Event()
        self.gates[q] = gate
        await gate.wait()
        return page_for(q)


@pytest.fixture
def articles():
    api = MagicMock()
    api.get_list = AsyncMock(side_effect=lambda q=None, limit=None: page_for(q))
    return api


@pytest.fixture
def system():
    api = MagicMock()
    api.get_hot_searches = AsyncMock(return_value=("React 19", "Next.js"))
    return api


class TestDebouncedInput:

    def test_burst_searches_once(self, articles, system, scheduler):
        controller = SearchController(articles, system, scheduler, debounce_ms=300)

        async def scenario():
            for text in ("r", "re", "react"):
                controller.on_input(text)
                scheduler.advance(0.1)
            scheduler.advance(0.3)
            for _ in range(3):
                await asyncio.sleep(0)

        asyncio.run(scenario())
        articles.get_list.assert_awaited_once_with(q="react", limit=5)
        assert [a.title for a in controller.results] == ["react"]
        assert controller.query == "react"
        assert not controller.loading


class TestOrdering:

    def test_stale_response_discarded(self, system, scheduler):
        gated = GatedArticles()
        controller = SearchController(gated, system, scheduler)

        async def scenario():
            older = asyncio.ensure_future(controller.search("re"))
            newer = asyncio.ensure_future(controller.search("react"))
            await asyncio.sleep(0)
            gated.gates["react"].set()
            await newer
            gated.gates["re"].set()
            await older

        asyncio.run(scenario())
        assert [a.title for a in controller.results] == ["react"]

    def test_reset_invalidates_in_flight(self, system, scheduler):
        gated = GatedArticles()
        controller = SearchController(gated, system, scheduler)

        async def scenario():
            pending = asyncio.ensure_future(controller.search("react"))
            await asyncio.sleep(0)
            controller.reset()
            gated.gates["react"].set()
            await pending

        asyncio.run(scenario())
        assert controller.results == ()
        assert not controller.loading


class TestEdgeCases:

    def test_blank_clears_without_request(self, articles, system, scheduler):
        controller = SearchController(articles, system, scheduler)
        asyncio.run(controller.search("react"))
        assert controller.results
        asyncio.run(controller.search("   "))
        assert controller.results == ()
        assert articles.get_list.await_count == 1

    def test_failure_sets_error(self, articles, system, scheduler):
        articles.get_list.side_effect = NotFoundError("index offline")
        controller = SearchController(articles, system, scheduler)
        asyncio.run(controller.search("react"))
        assert controller.error == "index offline"
        assert not controller.loading

    def test_hot_searches(self, articles, system, scheduler):
        controller = SearchController(articles, system, scheduler)
        assert asyncio.run(controller.load_hot_searches()) == ("React 19", "Next.js")

    def test_against_seeded_backend(self, app):
        results = asyncio.run(app.search.search("react"))
        assert results
        assert len(results) <= 5
        assert all(
            "react" in (a.title + a.summary + " ".join(a.tags)).lower()
            for a in results
        )
