# =============================================================================
# core/config.py  —  Runtime Settings from the Environment
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Collects every knob the server reads from the environment into one
#   Settings dataclass.  main.py calls load_dotenv() first, so a local .env
#   file works the same as real environment variables.
#
# VARIABLES:
#   DEBUG              "1" / "true" → verbose logging (cache hits, misses,
#                      writes and evictions show up on stderr)
#   CACHE_DIR          Where the Gutendex response cache lives
#                      (default: <repo>/.cache/gutendex)
#   CACHE_CAPACITY     Max cached responses (default: 10)
#   GUTENDEX_BASE_URL  Books endpoint (default: https://gutendex.com/books)
#   HTTP_TIMEOUT       Upstream request timeout in seconds (default: 10)
#   SCHEDULE_PATH      Conference schedule JSON (default: <repo>/schedule.json)
#   MCP_TRANSPORT      "stdio" (default), "http" or "sse"
#   HOST / PORT        Bind address for the network transports
#
# Malformed numbers fall back to their defaults rather than crashing the
# server at startup.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_CACHE_DIR = os.path.join(ROOT_DIR, ".cache", "gutendex")
DEFAULT_SCHEDULE_PATH = os.path.join(ROOT_DIR, "schedule.json")
DEFAULT_GUTENDEX_BASE_URL = "https://gutendex.com/books"

_TRANSPORTS = ("stdio", "http", "sse")


def is_truthy(value: Optional[str]) -> bool:
    """Interpret DEBUG-style flags: "1" or "true" (any case) are on."""
    return str(value or "").strip().lower() in ("1", "true")


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, default))
    except (TypeError, ValueError):
        return default


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(env.get(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    """Everything configurable about the server, with working defaults."""

    debug: bool = False
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_capacity: int = 10
    gutendex_base_url: str = DEFAULT_GUTENDEX_BASE_URL
    http_timeout: float = 10.0
    schedule_path: str = DEFAULT_SCHEDULE_PATH
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        capacity = _int(env, "CACHE_CAPACITY", 10)
        if capacity < 1:
            capacity = 10

        transport = env.get("MCP_TRANSPORT", "stdio").strip().lower()
        if transport not in _TRANSPORTS:
            transport = "stdio"

        return cls(
            debug=is_truthy(env.get("DEBUG")),
            cache_dir=env.get("CACHE_DIR") or DEFAULT_CACHE_DIR,
            cache_capacity=capacity,
            gutendex_base_url=env.get("GUTENDEX_BASE_URL") or DEFAULT_GUTENDEX_BASE_URL,
            http_timeout=_float(env, "HTTP_TIMEOUT", 10.0),
            schedule_path=env.get("SCHEDULE_PATH") or DEFAULT_SCHEDULE_PATH,
            transport=transport,
            host=env.get("HOST") or "127.0.0.1",
            port=_int(env, "PORT", 8000),
        )
