# =============================================================================
# main.py  —  Entry Point for the Widget Apps MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py                       # stdio (for local MCP clients)
#   MCP_TRANSPORT=http PORT=8000 uv run python main.py
#
# WHAT HAPPENS:
#   1. Loads .env (CACHE_DIR, DEBUG, PORT, ...) into the environment
#   2. Builds Settings and configures logging (stderr, DEBUG-aware)
#   3. Wires the tools to the settings (cache directory, capacity, ...)
#   4. Runs the FastMCP server on the chosen transport
#
# See core/config.py for every supported variable.
# =============================================================================

import logging

from dotenv import load_dotenv

# Load environment variables from .env BEFORE importing the tools module,
# which reads its default settings at import time.
load_dotenv()

from core.config import Settings
from tools.mcp_server import configure, mcp, setup_logging


def run_server() -> None:
    settings = Settings.from_env()
    setup_logging(settings.debug)
    configure(settings)

    logging.info(f"Starting widget-apps MCP server (transport={settings.transport})")
    if settings.debug:
        logging.info(f"Debug logging enabled, cache dir: {settings.cache_dir} "
                     f"(capacity {settings.cache_capacity})")

    if settings.transport == "stdio":
        mcp.run()
    else:
        logging.info(f"Listening on http://{settings.host}:{settings.port}")
        mcp.run(transport=settings.transport, host=settings.host, port=settings.port)


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    run_server()
