"""
Tests for the client reconciliation package.

These tests need no database: HTTP goes through httpx.MockTransport.

Usage:
    pytest client/tests/
"""
