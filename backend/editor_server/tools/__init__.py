"""
CLI tools for Editor Server administration.

This module provides command-line tools for:
- levels: Read, write, list and invalidate levels without the HTTP layer

Invariants:
    - Tools use the same configuration as the server
    - Writes go through the same handlers, so caches are invalidated
"""

from .level_cli import build_parser, main, run

__all__ = ["build_parser", "main", "run"]
