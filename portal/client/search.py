"""
Search box support: query history, suggestions and the debounced,
sequence-numbered global search.

All network failures are caught here, logged, and turned into an empty or
history-only answer; nothing in this module raises on a failed call.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from portal.services.scoring import highlight_text

from .api import API_ERRORS, ApiClient
from .storage import LocalStorage

logger = logging.getLogger(__name__)

HISTORY_KEY = "search_history"
HISTORY_LIMIT = 10
MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 20
SUGGESTIONS_LIMIT = 8
EMPTY_QUERY_SUGGESTIONS = 5
FALLBACK_SUGGESTIONS = 5
DEBOUNCE_SECONDS = 0.3

TYPE_LABELS = {
    'project': ('📁', 'Proyecto'),
    'hospital': ('🏥', 'Hospital'),
    'coordinator': ('👤', 'Coordinador'),
    'user': ('👥', 'Usuario'),
    'alert': ('⚠️', 'Alerta'),
    'communication': ('📧', 'Comunicación'),
}


class SearchHistory:
    """Most recent queries first, de-duplicated, capped at ``limit``."""

    def __init__(self, storage: LocalStorage, *, limit: int = HISTORY_LIMIT):
        self.storage = storage
        self.limit = limit
        self._items: list[str] = []

    def load(self) -> list[str]:
        saved = self.storage.get(HISTORY_KEY, [])
        if not isinstance(saved, list):
            logger.warning("ignoring malformed search history")
            saved = []
        self._items = [q for q in saved if isinstance(q, str)][:self.limit]
        return self.items()

    def items(self) -> list[str]:
        return list(self._items)

    def push(self, query: str) -> None:
        query = (query or '').strip()
        if not query:
            return
        self._items = [query] + [q for q in self._items if q != query]
        del self._items[self.limit:]
        self.storage.set(HISTORY_KEY, self._items)

    def matching(self, query: str) -> list[str]:
        needle = (query or '').lower()
        return [q for q in self._items if needle in q.lower()]

    def forget(self) -> None:
        """Drop the in-memory copy; what is persisted stays."""
        self._items = []

    def clear(self) -> None:
        self._items = []
        self.storage.remove(HISTORY_KEY)


def format_result(result: dict, query: str = '') -> dict:
    icon, label = TYPE_LABELS.get(result.get('type'), ('📄', 'Elemento'))
    highlighted = (result.get('highlighted') or {}).get('title')
    return {
        'icon': icon,
        'typeLabel': label,
        'highlight': highlighted or highlight_text(result.get('title') or '', query),
    }


class GlobalSearchClient:
    """Search and suggestions against the portal API for one session.

    Call ``load()`` at session start and ``close()`` at logout.
    """

    def __init__(self, api: ApiClient, history: SearchHistory):
        self.api = api
        self.history = history

    def load(self) -> None:
        self.history.load()

    def close(self) -> None:
        self.history.forget()

    async def search(self, query: str, filters: Optional[dict] = None,
                     limit: int = DEFAULT_LIMIT) -> list[dict]:
        query = (query or '').strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        payload = {'query': query, 'filters': filters or {}, 'limit': limit}
        try:
            data = await self.api.post('/api/search/global', payload)
        except API_ERRORS:
            logger.warning("global search failed for %r", query, exc_info=True)
            return []
        self.history.push(query)
        results = data.get('results') if isinstance(data, dict) else None
        return results or []

    async def search_projects(self, query: str, limit: int = 10) -> list[dict]:
        return await self.search(query, {'types': ['project']}, limit)

    async def search_hospitals(self, query: str, project_id=None, limit: int = 10) -> list[dict]:
        filters = {'types': ['hospital']}
        if project_id:
            filters['projects'] = [project_id]
        return await self.search(query, filters, limit)

    async def search_coordinators(self, query: str, project_id=None, limit: int = 10) -> list[dict]:
        filters = {'types': ['coordinator']}
        if project_id:
            filters['projects'] = [project_id]
        return await self.search(query, filters, limit)

    async def get_suggestions(self, query: str) -> list[str]:
        if not query:
            return self.history.items()[:EMPTY_QUERY_SUGGESTIONS]
        from_history = self.history.matching(query)
        try:
            data = await self.api.post('/api/search/suggestions', {'query': query.strip()})
        except API_ERRORS:
            logger.warning("suggestions failed for %r", query, exc_info=True)
            return from_history[:FALLBACK_SUGGESTIONS]
        suggested = data.get('suggestions') if isinstance(data, dict) else None
        server = [s for s in suggested or [] if isinstance(s, str)]
        return list(dict.fromkeys(server + from_history))[:SUGGESTIONS_LIMIT]


class SearchDebouncer:
    """Coalesce keystrokes into one search per pause and drop stale answers.

    ``submit`` restarts a ``delay`` timer; when it fires the search is issued
    with the next sequence number.  An issued request is never cancelled,
    but its results are only applied if no later request was issued since.
    """

    def __init__(self, client: GlobalSearchClient, *, delay: float = DEBOUNCE_SECONDS,
                 on_results: Optional[Callable[[list[dict]], None]] = None):
        self.client = client
        self.delay = delay
        self.on_results = on_results
        self.results: list[dict] = []
        self._issued = 0
        self._timer: Optional[asyncio.Task] = None

    @property
    def issued(self) -> int:
        return self._issued

    def submit(self, query: str, filters: Optional[dict] = None,
               limit: int = DEFAULT_LIMIT) -> asyncio.Task:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.ensure_future(self._fire(query, filters, limit))
        return self._timer

    async def _fire(self, query, filters, limit):
        await asyncio.sleep(self.delay)
        return await asyncio.shield(self.issue(query, filters, limit))

    async def issue(self, query: str, filters: Optional[dict] = None,
                    limit: int = DEFAULT_LIMIT) -> Optional[list[dict]]:
        """Run the search now; returns None when a newer request superseded it."""
        self._issued += 1
        seq = self._issued
        results = await self.client.search(query, filters, limit)
        if seq != self._issued:
            logger.debug("discarding stale search #%d (latest #%d)", seq, self._issued)
            return None
        self.results = results
        if self.on_results is not None:
            self.on_results(results)
        return results
