# tests/fixtures/__init__.py
"""Shared reference graphs for flowlanes tests."""
