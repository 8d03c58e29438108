"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (current user details, participant summaries)
- Registration (create user)

Related files:
    - models.py: User model
    - views.py: RegisterView
    - settings.py: REST_AUTH serializer configuration

Security:
    - Password fields are write-only
    - Email and timestamps are read-only on the details endpoint
"""

import re

from rest_framework import serializers

from authentication.models import User


def clean_username(value: str) -> str:
    """Strip and validate a display name (3-30 chars, alphanumeric + _ + -)."""
    username = value.strip()
    if not re.match(r"^[a-zA-Z0-9_-]{3,30}$", username):
        raise serializers.ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )
    return username


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model.

    Used by dj-rest-auth for /api/auth/me and embedded in chat payloads
    as the resolved identity of participants and message senders.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "avatar",
            "date_joined",
        ]
        read_only_fields = ["id", "email", "date_joined"]

    def validate_username(self, value):
        """Validate username format."""
        return clean_username(value)


class RegisterSerializer(serializers.Serializer):
    """
    Serializer for user registration.

    Used by RegisterView for POST /api/auth/register.
    """

    username = serializers.CharField(
        min_length=3,
        max_length=30,
        help_text="Display name (3-30 chars, alphanumeric + _ + -)",
    )
    email = serializers.EmailField(required=True)
    password1 = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Password must be at least 8 characters.",
    )
    password2 = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Confirm your password.",
    )

    def validate_username(self, value):
        """Validate username format."""
        return clean_username(value)

    def validate_email(self, value):
        """Validate that email is not already in use."""
        email = value.lower().strip()
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs["password1"] != attrs["password2"]:
            raise serializers.ValidationError({"password2": "Passwords do not match."})
        return attrs

    def save(self, request=None):
        """Create a new user with the validated data."""
        return User.objects.create_user(
            email=self.validated_data["email"],
            password=self.validated_data["password1"],
            username=self.validated_data["username"],
        )
