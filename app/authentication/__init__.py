"""
Authentication application.

Provides the email-based User model that identifies chat participants,
plus registration. Login, logout and current-user endpoints are served by
dj-rest-auth with SimpleJWT tokens; the same access token authenticates
websocket connections (see chat.middleware).

Usage:
    from authentication.models import User
"""
