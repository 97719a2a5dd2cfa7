# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP clients and core/.  Each tool:
#     1. Calls a function from core/
#     2. Is registered with a FastMCP tool decorator
#     3. Converts dataclasses to dicts for JSON
#     4. Reports expected failures as {"error": ...} instead of raising
#
# The docstring of every tool is its contract: MCP clients read it to decide
# when and how to call the tool.
# =============================================================================
