# =============================================================================
# core/gutendex.py  —  Project Gutenberg Search via the Gutendex API
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns a book query into a Gutendex URL, fetches it (through the FIFO
#   response cache), and maps the raw payload into Book records.
#
# WHY CACHE BY URL?
#   The full request URL already encodes every filter, so it is a complete
#   and stable cache key.  Two identical searches hit Gutendex once.
#
# THE SEPARATION OF "FETCH" AND "MAP":
#   - GutendexClient.fetch() returns the raw JSON exactly as Gutendex sent it
#     (that is also what gets cached).
#   - map_books() converts it into dataclasses for the tool layer.
#   This keeps the cache format independent of our own models.
#
# FAILURE BEHAVIOR:
#   Cache problems never surface (the cache swallows them).  Upstream
#   problems do: a network error or non-2xx status raises GutendexError and
#   the tool layer reports it to the client.
# =============================================================================

import json
import logging
import time
from dataclasses import dataclass, fields
from typing import Any, Optional
from urllib.parse import urlencode, urlparse

import httpx

from core.cache import FileFifoCache
from core.config import DEFAULT_GUTENDEX_BASE_URL
from core.models import Author, Book, BookSearchResult

logger = logging.getLogger(__name__)

SORT_ORDERS = ("popular", "ascending", "descending")

_MISSING = object()


class GutendexError(RuntimeError):
    """The Gutendex API could not be reached or answered with an error."""


def truncate(text: str, limit: int = 4000) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [truncated {len(text) - limit} chars]"


# =============================================================================
# Query → URL
# =============================================================================
@dataclass
class BookQuery:
    """Search filters accepted by the Gutendex /books endpoint.

    `page_url` is a full Gutendex URL (usually a previous response's
    "next"/"previous" link) and, when set, overrides every other field.
    """

    search: Optional[str] = None
    languages: Optional[str] = None        # "en,fr"
    author_year_start: Optional[int] = None
    author_year_end: Optional[int] = None
    mime_type: Optional[str] = None        # "text/html"
    topic: Optional[str] = None
    ids: Optional[str] = None              # "11,12,13"
    copyright: Optional[str] = None        # "true", "false", "null" or a combo
    sort: Optional[str] = None
    page: Optional[int] = None
    page_url: Optional[str] = None

    def __post_init__(self):
        # Strip text filters; an empty string means "not set".
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str):
                setattr(self, f.name, value.strip() or None)

        if self.sort is not None and self.sort not in SORT_ORDERS:
            raise ValueError(f"sort must be one of {', '.join(SORT_ORDERS)}, got {self.sort!r}")

        if self.page_url is not None:
            parsed = urlparse(self.page_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"page_url must be an absolute http(s) URL, got {self.page_url!r}")

    def params(self) -> list[tuple[str, str]]:
        """Query parameters in a fixed order, skipping unset fields."""
        pairs = []
        for name in (
            "search", "languages", "author_year_start", "author_year_end",
            "mime_type", "topic", "ids", "copyright", "sort", "page",
        ):
            value = getattr(self, name)
            if value is None:
                continue
            pairs.append((name, str(value)))
        return pairs

    def to_dict(self) -> dict:
        """The fields that were actually set, for echoing back to the client."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def build_search_url(query: BookQuery, base_url: str = DEFAULT_GUTENDEX_BASE_URL) -> str:
    if query.page_url:
        return query.page_url
    params = query.params()
    if not params:
        return base_url
    return f"{base_url}?{urlencode(params)}"


# =============================================================================
# Client
# =============================================================================
class GutendexClient:
    """Fetches Gutendex pages, serving repeats from the response cache.

    Args:
        cache: Response cache keyed by request URL.
        http_client: Optional shared httpx.AsyncClient.  When omitted, a
            short-lived client is opened per request.
        base_url: The /books endpoint.
        timeout: Per-request timeout in seconds (own client only).
    """

    def __init__(
        self,
        cache: FileFifoCache,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_GUTENDEX_BASE_URL,
        timeout: float = 10.0,
    ):
        self.cache = cache
        self.base_url = base_url
        self._client = http_client
        self._timeout = timeout

    async def fetch(self, query: BookQuery) -> Any:
        """Return the raw Gutendex JSON for `query`."""
        url = build_search_url(query, self.base_url)
        logger.info(f"Gutendex request {url}")

        cached = await self.cache.read(url, _MISSING)
        if cached is not _MISSING:
            logger.info(f"Gutendex cache hit {url}")
            return cached

        started = time.monotonic()
        try:
            response = await self._get(url)
        except httpx.HTTPError as e:
            raise GutendexError(f"Gutendex request failed: {e}") from e
        elapsed_ms = round((time.monotonic() - started) * 1000)
        logger.info(f"Gutendex fetch status={response.status_code} ms={elapsed_ms}")

        if response.is_error:
            raise GutendexError(
                f"Gutendex request failed: {response.status_code} {response.reason_phrase}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise GutendexError(f"Gutendex returned invalid JSON: {e}") from e

        self._log_summary(data)
        await self.cache.write(url, data)
        return data

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, follow_redirects=True)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, follow_redirects=True)

    @staticmethod
    def _log_summary(data: Any) -> None:
        if not isinstance(data, dict):
            logger.info("Gutendex response summary: non-object payload")
            return
        results = data.get("results")
        count = data.get("count")
        if count is None and isinstance(results, list):
            count = len(results)
        logger.info(
            f"Gutendex response summary count={count} "
            f"results={len(results) if isinstance(results, list) else None} "
            f"next={bool(data.get('next'))} previous={bool(data.get('previous'))}"
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Gutendex response body {truncate(json.dumps(data))}")


# =============================================================================
# Payload → models
# =============================================================================
def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _map_book(raw: dict) -> Book:
    formats = raw.get("formats") or {}
    cover = formats.get("image/jpeg")
    return Book(
        id=raw.get("id"),
        title=raw.get("title", ""),
        authors=[
            Author(
                name=a.get("name", ""),
                birth_year=a.get("birth_year"),
                death_year=a.get("death_year"),
            )
            for a in _list(raw.get("authors"))
            if isinstance(a, dict)
        ],
        languages=_list(raw.get("languages")),
        download_count=raw.get("download_count") or 0,
        media_type=raw.get("media_type"),
        summaries=_list(raw.get("summaries")),
        subjects=_list(raw.get("subjects")),
        bookshelves=_list(raw.get("bookshelves")),
        cover_url=cover if isinstance(cover, str) else None,
        formats=formats,
    )


def map_books(payload: Any) -> BookSearchResult:
    """Convert a Gutendex /books payload into a BookSearchResult.

    Missing or mistyped fields fall back to empty values instead of raising;
    `count` falls back to the number of results on the page.
    """
    payload = payload if isinstance(payload, dict) else {}
    books = [_map_book(b) for b in _list(payload.get("results")) if isinstance(b, dict)]
    count = payload.get("count")
    return BookSearchResult(
        count=count if isinstance(count, int) else len(books),
        next=payload.get("next"),
        previous=payload.get("previous"),
        results=books,
    )
