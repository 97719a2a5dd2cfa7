# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that flows
# between the upstream data sources and the MCP tools.  They carry no
# behavior; they are structured bags of data.
#
# WHY DATACLASSES?
#   - They auto-generate __init__, __repr__, and __eq__ for free.
#   - asdict() turns them into plain dicts, which is exactly what an MCP
#     tool returns over the wire.
#
# DESIGN PRINCIPLE: "No Phantom Fields"
#   If a field exists in a model, the widget or the model client will read
#   it.  Anything else stays in the raw upstream payload.
# =============================================================================

from dataclasses import dataclass, field
from typing import Optional


# -----------------------------------------------------------------------------
# Gutendex (Project Gutenberg) models
# -----------------------------------------------------------------------------
@dataclass
class Author:
    """A book author as reported by Gutendex."""

    name: str
    birth_year: Optional[int] = None
    death_year: Optional[int] = None


@dataclass
class Book:
    """One Project Gutenberg book, trimmed to what the search widget renders."""

    id: int
    title: str
    authors: list[Author] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    download_count: int = 0
    media_type: Optional[str] = None
    summaries: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    bookshelves: list[str] = field(default_factory=list)
    cover_url: Optional[str] = None    # formats["image/jpeg"] when present
    formats: dict[str, str] = field(default_factory=dict)


@dataclass
class BookSearchResult:
    """A single page of Gutendex search results."""

    count: int                         # Total matches across all pages
    next: Optional[str] = None         # Absolute URL of the next page
    previous: Optional[str] = None
    results: list[Book] = field(default_factory=list)


# -----------------------------------------------------------------------------
# Conference schedule models
# -----------------------------------------------------------------------------
# RawTalk mirrors one record of schedule.json.  Talk is the processed form
# the tools return: formatted time, day label, and a derived category.
# -----------------------------------------------------------------------------
@dataclass
class RawTalk:
    """A talk record exactly as stored in schedule.json."""

    id: str
    title: str
    from_time: str                     # ISO timestamp
    to_time: str                       # ISO timestamp
    kind: str = "Talk"                 # "Talk" or "Other"
    speakers_plain_text: Optional[str] = None
    abstract: Optional[str] = None
    track: Optional[str] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Talk:
    """A talk formatted for listing and detail views."""

    id: str
    title: str
    speakers: str                      # "Various" when unknown
    time: str                          # "14:15–14:50"
    day: str                           # "Oct 6"
    kind: str
    category: str
    track: str                         # "General" when unknown
    tags: list[str] = field(default_factory=list)
    abstract: Optional[str] = None     # Only filled in for the detail view


@dataclass
class TalkFilters:
    """Optional criteria for narrowing the talk list.  Unset means "any"."""

    category: Optional[str] = None
    day: Optional[str] = None
    speaker: Optional[str] = None      # Case-insensitive substring
    keywords: list[str] = field(default_factory=list)
    track: Optional[str] = None
    tags: list[str] = field(default_factory=list)
