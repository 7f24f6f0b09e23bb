"""
Editor Server Test Suite.

This package contains:
- unit/: Unit tests (no external services; Redis is mocked)
- integration/: Integration tests (SQLite store, in-memory byte cache)
"""
