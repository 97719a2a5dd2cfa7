# =============================================================================
# core/schedule.py  —  Conference Schedule Loading, Filtering & Grouping
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads schedule.json, turns each raw record into a display-ready Talk
#   (formatted time range, day label, derived category), and provides the
#   filters and groupings the schedule tools expose.
#
# TIME FORMATTING:
#   Times are shown in the wall-clock time of the timestamp itself
#   ("2025-10-06T14:15:00+02:00" → "14:15"), not converted to the server's
#   local zone.  A conference schedule is read in the venue's time.
#
# All functions here are pure except load_schedule(), which reads a file.
# =============================================================================

import json
from datetime import datetime
from typing import Iterable, Optional

from core.categorize import categorize_talk
from core.config import DEFAULT_SCHEDULE_PATH
from core.models import RawTalk, Talk, TalkFilters


# =============================================================================
# Loading
# =============================================================================
def _raw_talk(record: dict) -> RawTalk:
    return RawTalk(
        id=str(record["id"]),
        title=record["title"],
        from_time=record["fromTime"],
        to_time=record["toTime"],
        kind=record.get("kind") or "Talk",
        speakers_plain_text=record.get("speakersPlainText"),
        abstract=record.get("abstract"),
        track=record.get("track"),
        tags=list(record.get("tags") or []),
    )


def load_schedule(path: Optional[str] = None) -> list[RawTalk]:
    """Read and parse the schedule file (schedule.json at the repo root by default).

    Raises:
        OSError: the file cannot be read.
        ValueError: the file is not valid JSON or a record is missing a field.
    """
    with open(path or DEFAULT_SCHEDULE_PATH, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError("schedule file must contain a JSON array of talks")
    try:
        return [_raw_talk(r) for r in records]
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed talk record: {e}") from e


# =============================================================================
# Formatting
# =============================================================================
def _parse_timestamp(value: str) -> datetime:
    # fromisoformat() only learned to read a trailing "Z" in Python 3.11.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def format_time_range(from_time: str, to_time: str) -> str:
    start = _parse_timestamp(from_time)
    end = _parse_timestamp(to_time)
    return f"{start:%H:%M}–{end:%H:%M}"


def format_day(from_time: str) -> str:
    start = _parse_timestamp(from_time)
    return f"{start:%b} {start.day}"


def transform_talks(raw_talks: Iterable[RawTalk], include_abstract: bool = False) -> list[Talk]:
    """Turn raw records into Talks.  Abstracts are only kept when asked for."""
    return [
        Talk(
            id=raw.id,
            title=raw.title,
            speakers=raw.speakers_plain_text or "Various",
            time=format_time_range(raw.from_time, raw.to_time),
            day=format_day(raw.from_time),
            kind=raw.kind,
            category=categorize_talk(raw.title, raw.abstract),
            track=raw.track or "General",
            tags=list(raw.tags),
            abstract=raw.abstract if include_abstract and raw.abstract else None,
        )
        for raw in raw_talks
    ]


# =============================================================================
# Filtering & grouping
# =============================================================================
def _matches(talk: Talk, filters: TalkFilters) -> bool:
    if filters.category and talk.category != filters.category:
        return False
    if filters.day and talk.day != filters.day:
        return False
    if filters.speaker and filters.speaker.lower() not in talk.speakers.lower():
        return False
    if filters.keywords:
        search_text = f"{talk.title} {talk.speakers}".lower()
        if not any(kw.lower() in search_text for kw in filters.keywords):
            return False
    if filters.track and talk.track != filters.track:
        return False
    if filters.tags and not any(tag in talk.tags for tag in filters.tags):
        return False
    return True


def filter_talks(talks: Iterable[Talk], filters: TalkFilters) -> list[Talk]:
    return [talk for talk in talks if _matches(talk, filters)]


def group_talks_by_category(talks: Iterable[Talk]) -> dict[str, list[Talk]]:
    groups: dict[str, list[Talk]] = {}
    for talk in talks:
        groups.setdefault(talk.category, []).append(talk)
    return groups


def group_talks_by_track(talks: Iterable[Talk]) -> dict[str, list[Talk]]:
    groups: dict[str, list[Talk]] = {}
    for talk in talks:
        groups.setdefault(talk.track, []).append(talk)
    return groups


def get_talk_by_id(talks: Iterable[Talk], talk_id: str) -> Optional[Talk]:
    return next((t for t in talks if t.id == talk_id), None)


def get_all_tracks(talks: Iterable[Talk]) -> list[str]:
    return sorted({t.track for t in talks})


def get_all_tags(talks: Iterable[Talk]) -> list[str]:
    return sorted({tag for t in talks for tag in t.tags})


def build_filter_summary(filters: TalkFilters, count: int) -> str:
    """One-line description of a search, e.g. 'Found 2 talks matching day "Oct 6"'."""
    parts = []
    if filters.category:
        parts.append(f'category "{filters.category}"')
    if filters.day:
        parts.append(f'day "{filters.day}"')
    if filters.speaker:
        parts.append(f'speaker "{filters.speaker}"')
    if filters.keywords:
        parts.append(f'keywords "{", ".join(filters.keywords)}"')

    if not parts:
        return f"Showing all {count} talks"
    plural = "" if count == 1 else "s"
    return f"Found {count} talk{plural} matching {' and '.join(parts)}"
