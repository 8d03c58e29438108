"""
Authentication for the SSE endpoint.

Browsers' EventSource cannot set request headers, so the streaming GET
also accepts the access token as ?token=<jwt>.
"""

from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication


class QueryParamJWTAuthentication(JWTAuthentication):
    """
    SimpleJWT authentication with a query string fallback.

    The Authorization header wins when present. The query parameter is
    only read on GET requests.
    """

    query_param = "token"

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is not None or request.method != "GET":
            return result

        raw_token = request.query_params.get(self.query_param)
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token
