# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL business logic: the response cache, the upstream
# Gutendex client, and the conference schedule.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The tools/ layer is just the
#   wiring; the core is the engine, and it can be tested without a server.
# =============================================================================
