"""Shared test fixtures."""

import httpx
import pytest

from core.cache import FileFifoCache, MemoryCacheStorage
from core.config import DEFAULT_SCHEDULE_PATH, Settings


@pytest.fixture
def cache_dir(tmp_path):
    """A cache directory that does not exist yet."""
    return tmp_path / "cache"


@pytest.fixture
def memory_storage() -> MemoryCacheStorage:
    return MemoryCacheStorage()


@pytest.fixture
def memory_cache(memory_storage) -> FileFifoCache:
    """Capacity-3 cache with no disk behind it."""
    return FileFifoCache("unused", capacity=3, storage=memory_storage)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        cache_dir=str(tmp_path / "cache"),
        cache_capacity=10,
        gutendex_base_url="https://gutendex.test/books",
        schedule_path=DEFAULT_SCHEDULE_PATH,
    )


@pytest.fixture
def gutendex_payload() -> dict:
    return {
        "count": 2,
        "next": "https://gutendex.test/books?page=2&search=dickens",
        "previous": None,
        "results": [
            {
                "id": 98,
                "title": "A Tale of Two Cities",
                "authors": [{"name": "Dickens, Charles", "birth_year": 1812, "death_year": 1870}],
                "summaries": ["A historical novel."],
                "subjects": ["London (England) -- History -- 18th century -- Fiction"],
                "bookshelves": ["Historical Fiction"],
                "languages": ["en"],
                "copyright": False,
                "media_type": "Text",
                "formats": {
                    "text/html": "https://www.gutenberg.org/ebooks/98.html.images",
                    "image/jpeg": "https://www.gutenberg.org/cache/epub/98/pg98.cover.medium.jpg",
                },
                "download_count": 12345,
            },
            {
                "id": 1400,
                "title": "Great Expectations",
                "authors": [{"name": "Dickens, Charles"}],
                "formats": {},
            },
        ],
    }


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def json_transport(gutendex_payload):
    """Transport answering every request with the sample Gutendex payload."""
    return RecordingTransport(lambda request: httpx.Response(200, json=gutendex_payload))
