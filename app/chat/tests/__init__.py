"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Chat, Message model tests
- test_services.py: ChatService tests
- test_views.py: REST API endpoint tests
- test_consumers.py: WebSocket consumer tests
- test_middleware.py: JWT websocket authentication tests
- test_registry.py: ConnectionRegistry tests
- test_broadcast.py: Channel layer event tests
- test_routing.py: Lifespan teardown tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
