"""
Centralized mock objects for testing.

This package provides reusable mock factories for WebSocket transport and
delivery scenarios, reducing code duplication across test files.
"""
