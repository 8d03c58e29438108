"""
Test configuration and fixtures for authentication tests.

Project-wide fixtures (user, api_client, authenticated_client, ...) live
in app/conftest.py. This module adds registration and login data.

Usage:
    def test_example(api_client, valid_registration_data):
        response = api_client.post("/api/auth/register", valid_registration_data)
        assert response.status_code == 201
"""

import pytest

from authentication.models import User


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!", username="admin"
    )


@pytest.fixture
def valid_registration_data():
    """Registration payload that passes every validator."""
    return {
        "username": "ada_l",
        "email": "ada@example.com",
        "password1": "Analytical-Engine-1843",
        "password2": "Analytical-Engine-1843",
    }


@pytest.fixture
def invalid_usernames():
    """Display names rejected by the username format validator."""
    return [
        "ab",  # too short
        "a" * 31,  # too long
        "has space",
        "semi;colon",
        "émile",
    ]
