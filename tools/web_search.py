"""Web search tool.

Real search is out of scope; the default provider returns fixed results so
the gap-filling path of enrichment can be exercised end to end. Any async
callable taking a query and returning SearchResult objects can be plugged in.
"""

from typing import Any, Awaitable, Callable

from schemas.candidate import SearchResult

from .base import BaseTool

SearchProvider = Callable[[str], Awaitable[list[SearchResult]]]

MOCK_RESULTS = [
    SearchResult(
        title="Talk: Next.js Performance Optimization",
        url="https://example.com/jsconf-2023-nextjs-talk",
        snippet="Speaker at JSConf 2023, discussing advanced Next.js optimization techniques...",
    ),
    SearchResult(
        title="Open-source Project: data-utils",
        url="https://github.com/mock/data-utils",
        snippet="TypeScript utilities for ETL pipelines with 150+ stars. Active maintainer.",
    ),
    SearchResult(
        title="Conference Presentation: Real-time Features in React",
        url="https://example.com/reactconf-2022",
        snippet="Presented at ReactConf 2022 on building real-time collaboration features...",
    ),
]


async def mock_search(query: str) -> list[SearchResult]:
    """Return the fixed result set for any query."""
    return [r.model_copy() for r in MOCK_RESULTS]


class WebSearchTool(BaseTool):
    name = "webSearch"
    description = "Search the web for missing profile information"

    def __init__(self, provider: SearchProvider | None = None) -> None:
        self.provider = provider or mock_search

    async def execute(self, query: str = "", **kwargs: Any) -> list[SearchResult]:
        return await self.provider(query)
