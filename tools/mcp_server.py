# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines the MCP tools the widgets and model clients call.  Each tool is a
#   thin wrapper around a core/ function: it validates input, shapes the
#   output dict, and logs the call.
#
# HOW IT WORKS (the flow):
#   1. The client calls a tool by name via MCP (e.g., "search_books")
#   2. FastMCP routes the call to the decorated function below
#   3. The function calls core/ logic and formats the result
#   4. The client receives a plain dict (rendered by the widget)
#
# TOOL NAMING CONVENTIONS:
#   - search_* → Query with filters (idempotent, safe to retry)
#   - get_*    → Read-only retrieval of one item
#   Every tool here is read-only.
#
# ERROR CONVENTION:
#   Tools never raise for expected problems (bad filter, unknown talk,
#   upstream outage).  They return {"error": "..."} so the client can show
#   the message and move on.
#
# RUNNING THIS SERVER:
#   a) Via the entry point:  python main.py
#   b) Standalone (stdio):   python -m tools.mcp_server
# =============================================================================

import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

from fastmcp import FastMCP

# --- Import core logic ---
# The tools layer depends on core/ and nothing else.
from core.cache import FileFifoCache
from core.categorize import ALL_CATEGORIES
from core.config import Settings
from core.gutendex import BookQuery, GutendexClient, GutendexError, map_books
from core.models import TalkFilters
from core.schedule import (
    build_filter_summary,
    filter_talks,
    get_talk_by_id,
    group_talks_by_category,
    load_schedule,
    transform_talks,
)

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because with the stdio transport, STDOUT *is* the MCP
# message stream.  Anything printed there would corrupt the protocol.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status/progress messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color


def setup_logging(debug: bool = False) -> None:
    """Send logs to stderr; DEBUG adds cache hit/miss/write/evict traces."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # The HTTP stack is chatty at DEBUG and adds nothing to our own traces.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'))}{_RESET}")
    return result


# =============================================================================
# Wiring: settings, response cache, upstream client
# =============================================================================
# Built once at import time from the environment.  main.py (and the tests)
# call configure() to rebuild them from explicit Settings.
_settings = Settings.from_env()
_book_client = GutendexClient(
    FileFifoCache(_settings.cache_dir, _settings.cache_capacity),
    base_url=_settings.gutendex_base_url,
    timeout=_settings.http_timeout,
)


def configure(settings: Settings, book_client: Optional[GutendexClient] = None) -> None:
    """Point the tools at new settings (and optionally a prepared client)."""
    global _settings, _book_client
    _settings = settings
    _book_client = book_client or GutendexClient(
        FileFifoCache(settings.cache_dir, settings.cache_capacity),
        base_url=settings.gutendex_base_url,
        timeout=settings.http_timeout,
    )


def current_settings() -> Settings:
    return _settings


def _talk_dict(talk) -> dict:
    """A talk as a dict; the abstract key only appears when there is one."""
    result = asdict(talk)
    if result.get("abstract") is None:
        result.pop("abstract", None)
    return result


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("widget-apps")


# =============================================================================
# TOOL 1: search_books
# =============================================================================
# Wraps the Gutendex /books endpoint.  Repeated identical searches are served
# from the on-disk FIFO cache (see core/cache.py), so paging back and forth
# through results does not hammer the public API.
# =============================================================================
@mcp.tool(annotations={"readOnlyHint": True})
async def search_books(
    search: Optional[str] = None,
    languages: Optional[str] = None,
    author_year_start: Optional[int] = None,
    author_year_end: Optional[int] = None,
    mime_type: Optional[str] = None,
    topic: Optional[str] = None,
    ids: Optional[str] = None,
    copyright: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[int] = None,
    page_url: Optional[str] = None,
) -> dict:
    """Search Project Gutenberg books via the Gutendex API.

    Args:
        search: Full-text search across titles and authors.
        languages: Comma-separated 2-letter language codes (e.g. "en,fr").
        author_year_start: Author alive on/after this year.
        author_year_end: Author alive on/before this year.
        mime_type: MIME type prefix to match (e.g. "text/html").
        topic: Substring to match bookshelf or subject.
        ids: Comma-separated Gutenberg IDs to filter.
        copyright: Copyright filter: "true", "false", "null" or a comma combo.
        sort: "popular" (default), "ascending" or "descending".
        page: Page number.
        page_url: A "next"/"previous" URL from an earlier result.
            Overrides all other parameters.

    Returns:
        A dict with:
          - query: The filters that were applied
          - count: Total matching books
          - next, previous: Page URLs (or null)
          - results: Books with id, title, authors, languages,
            download_count, subjects, bookshelves, cover_url, formats
    """
    params = dict(
        search=search, languages=languages, author_year_start=author_year_start,
        author_year_end=author_year_end, mime_type=mime_type, topic=topic, ids=ids,
        copyright=copyright, sort=sort, page=page, page_url=page_url,
    )
    _log_request("search_books", **{k: v for k, v in params.items() if v is not None})

    try:
        query = BookQuery(**params)
    except ValueError as e:
        _log_status(f"Invalid query: {e}")
        return _log_response("search_books", {"error": str(e)})

    try:
        payload = await _book_client.fetch(query)
    except GutendexError as e:
        _log_status(str(e))
        return _log_response("search_books", {"error": str(e), "query": query.to_dict()})

    result = map_books(payload)
    _log_status(f"Found {result.count} books ({len(result.results)} on this page)")

    # Book formats can be long; log the summary only, return everything.
    logging.info(f"{_GREEN}  ← search_books response: count={result.count}, "
                 f"results={len(result.results)}{_RESET}")
    return {"query": query.to_dict(), **asdict(result)}


# =============================================================================
# TOOL 2: search_talks
# =============================================================================
@mcp.tool(annotations={"readOnlyHint": True})
def search_talks(
    category: Optional[str] = None,
    day: Optional[str] = None,
    speaker: Optional[str] = None,
    keywords: Optional[list[str]] = None,
) -> dict:
    """Search and filter conference talks, grouped by category.

    Use this when users want to browse, filter, or discover sessions.

    Args:
        category: One of "AI & Machine Learning", "SwiftUI & Design",
            "Concurrency & Performance", "Testing", "Platform & Tools",
            "Live Activities & Widgets", "Accessibility", "Vision & Spatial",
            "Cross-Platform", "Voice & Speech", "Error Handling",
            "Analytics", "General".
        day: Day label, e.g. "Oct 6".
        speaker: Speaker name (partial, case-insensitive).
        keywords: Any of these words in the title or speaker names.

    Returns:
        A dict with:
          - talks: Matching talks (without abstracts)
          - groups: The same talks keyed by category
          - total_count: Number of matches
          - filter_summary: Human-readable description of the search
    """
    _log_request("search_talks", category=category, day=day,
                 speaker=speaker, keywords=keywords)

    if category and category not in ALL_CATEGORIES:
        _log_status(f"Unknown category {category!r}")
        return _log_response("search_talks", {
            "error": f"Unknown category '{category}'.",
            "available_categories": ALL_CATEGORIES,
        })

    try:
        talks = transform_talks(load_schedule(_settings.schedule_path))
    except (OSError, ValueError) as e:
        _log_status(f"Schedule unavailable: {e}")
        return _log_response("search_talks", {"error": f"Schedule unavailable: {e}"})

    filters = TalkFilters(category=category, day=day, speaker=speaker,
                          keywords=list(keywords or []))
    matched = filter_talks(talks, filters)
    _log_status(f"{len(matched)} of {len(talks)} talks match")

    groups = group_talks_by_category(matched)
    return _log_response("search_talks", {
        "talks": [_talk_dict(t) for t in matched],
        "groups": {name: [_talk_dict(t) for t in items] for name, items in groups.items()},
        "total_count": len(matched),
        "filter_summary": build_filter_summary(filters, len(matched)),
    })


# =============================================================================
# TOOL 3: get_talk_details
# =============================================================================
@mcp.tool(annotations={"readOnlyHint": True})
def get_talk_details(talk_id: str) -> dict:
    """Get full details for one talk, including its abstract.

    Use this when a user opens a talk card or asks about a specific session.

    Args:
        talk_id: The talk's unique ID (from search_talks results).

    Returns:
        The talk as a dict (id, title, speakers, time, day, kind, category,
        track, tags, abstract), or an error if the ID is unknown.
    """
    _log_request("get_talk_details", talk_id=talk_id)

    try:
        talks = transform_talks(load_schedule(_settings.schedule_path), include_abstract=True)
    except (OSError, ValueError) as e:
        _log_status(f"Schedule unavailable: {e}")
        return _log_response("get_talk_details", {"error": f"Schedule unavailable: {e}"})

    talk = get_talk_by_id(talks, talk_id)
    if talk is None:
        _log_status("Talk not found")
        return _log_response("get_talk_details", {"error": "Talk not found", "talk_id": talk_id})
    return _log_response("get_talk_details", _talk_dict(talk))


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    setup_logging(_settings.debug)
    mcp.run()
