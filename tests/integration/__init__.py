"""Integration tests.

These tests run real threads against the shared caches, the dispatch
tables, and the completion gate. They are slower than the unit tests and
can be skipped with ``pytest tests/unit/``.
"""
from __future__ import annotations
