"""Tests for the MCP tool functions."""

import httpx
import pytest

from core.cache import FileFifoCache
from core.config import Settings
from core.gutendex import GutendexClient
from tests.conftest import RecordingTransport
from tools import mcp_server


def _fn(tool):
    """The plain function behind a FastMCP tool registration."""
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True)
def configured(test_settings):
    mcp_server.configure(test_settings)
    yield test_settings
    mcp_server.configure(Settings.from_env())


class TestSearchTalks:
    def test_all_talks(self):
        result = _fn(mcp_server.search_talks)()

        assert result["total_count"] == 7
        assert result["filter_summary"] == "Showing all 7 talks"
        assert all("abstract" not in t for t in result["talks"])
        assert set(result["groups"]) >= {"Testing", "General"}

    def test_filtered(self):
        result = _fn(mcp_server.search_talks)(day="Oct 7", speaker="Jane")

        assert [t["id"] for t in result["talks"]] == ["t7"]
        assert result["groups"] == {"Live Activities & Widgets": result["talks"]}
        assert result["filter_summary"] == 'Found 1 talk matching day "Oct 7" and speaker "Jane"'

    def test_unknown_category(self):
        result = _fn(mcp_server.search_talks)(category="Cooking")

        assert "error" in result
        assert "General" in result["available_categories"]

    def test_missing_schedule_file(self, test_settings, tmp_path):
        test_settings.schedule_path = str(tmp_path / "missing.json")
        mcp_server.configure(test_settings)

        result = _fn(mcp_server.search_talks)()

        assert result["error"].startswith("Schedule unavailable")


class TestGetTalkDetails:
    def test_includes_abstract(self):
        talk = _fn(mcp_server.get_talk_details)("t5")

        assert talk["title"] == "Strict Concurrency Without Tears"
        assert talk["abstract"].startswith("Adopting the Swift 6")
        assert talk["category"] == "Concurrency & Performance"

    def test_missing_abstract_is_omitted(self):
        talk = _fn(mcp_server.get_talk_details)("t4")

        assert talk["id"] == "t4"
        assert "abstract" not in talk

    def test_unknown_talk(self):
        assert _fn(mcp_server.get_talk_details)("zzz") == {"error": "Talk not found", "talk_id": "zzz"}


class TestSearchBooks:
    @pytest.fixture
    def wire_client(self, test_settings):
        """Install a Gutendex client backed by the given transport."""
        clients = []

        def wire(transport):
            http = httpx.AsyncClient(transport=transport)
            clients.append(http)
            client = GutendexClient(
                FileFifoCache(test_settings.cache_dir, test_settings.cache_capacity),
                http_client=http,
                base_url=test_settings.gutendex_base_url,
            )
            mcp_server.configure(test_settings, book_client=client)
            return client

        return wire

    @pytest.mark.asyncio
    async def test_returns_mapped_results(self, wire_client, json_transport):
        wire_client(json_transport)

        result = await _fn(mcp_server.search_books)(search="dickens", languages="en")

        assert result["query"] == {"search": "dickens", "languages": "en"}
        assert result["count"] == 2
        assert result["results"][0]["title"] == "A Tale of Two Cities"
        assert result["results"][0]["authors"][0]["birth_year"] == 1812
        assert result["next"].endswith("page=2&search=dickens")

    @pytest.mark.asyncio
    async def test_repeat_search_uses_cache(self, wire_client, json_transport):
        wire_client(json_transport)

        await _fn(mcp_server.search_books)(search="dickens")
        again = await _fn(mcp_server.search_books)(search="dickens")

        assert again["count"] == 2
        assert len(json_transport.requests) == 1

    @pytest.mark.asyncio
    async def test_invalid_sort(self, wire_client, json_transport):
        wire_client(json_transport)

        result = await _fn(mcp_server.search_books)(sort="random")

        assert "error" in result
        assert json_transport.requests == []

    @pytest.mark.asyncio
    async def test_upstream_failure_is_reported(self, wire_client):
        wire_client(RecordingTransport(lambda request: httpx.Response(500)))

        result = await _fn(mcp_server.search_books)(search="x")

        assert "500" in result["error"]
        assert result["query"] == {"search": "x"}


class TestToolRegistration:
    @pytest.mark.asyncio
    async def test_every_tool_is_read_only(self):
        tools = await mcp_server.mcp.get_tools()

        assert set(tools) == {"search_books", "search_talks", "get_talk_details"}
        for tool in tools.values():
            assert tool.annotations.readOnlyHint is True
