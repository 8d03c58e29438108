"""
Authentication views.

Login, logout and current-user endpoints come from dj-rest-auth and are
wired in urls.py; this module adds registration, which issues the same
JWT pair the login endpoint returns so a new user can open a websocket
immediately.

Related files:
    - serializers.py: RegisterSerializer, UserSerializer
    - urls.py: URL routing
"""

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.serializers import RegisterSerializer, UserSerializer

logger = logging.getLogger(__name__)


class RegisterView(APIView):
    """
    Register a new account.

    POST /api/auth/register

    Request body:
        {
            "username": "ada",
            "email": "ada@example.com",
            "password1": "correct-horse",
            "password2": "correct-horse"
        }

    Returns:
        201 {"access": "...", "refresh": "...", "user": {...}}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="auth_register_create",
        summary="Register new account",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={
            201: OpenApiResponse(description="Account created; JWT pair returned"),
            400: OpenApiResponse(description="Validation failed"),
        },
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save(request)

        refresh = RefreshToken.for_user(user)
        logger.info(f"Registered user {user.id}")

        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )
