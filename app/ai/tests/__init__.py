"""
Tests for AI app.

This package contains test modules for:
- test_services.py: ChatCompletionService tests (context, fallbacks, streaming)
- test_providers.py: OpenAI-compatible provider tests
- test_views.py: API endpoint tests

Usage:
    pytest ai/tests/
    pytest ai/tests/test_services.py
"""
