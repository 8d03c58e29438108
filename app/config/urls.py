"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/auth/                     - Authentication endpoints
        register                   - Create account (custom)
        login                      - Email/password login (dj-rest-auth)
        logout                     - Blacklist refresh token (dj-rest-auth)
        me                         - Current user (dj-rest-auth)
    /api/chat                      - Chat list/create
    /api/chat/{id}                 - Chat detail/rename/delete
    /api/chat/{id}/messages        - Message append / messages since
    /api/ai/message                - AI reply (POST blocking, GET SSE stream)
    /api/ai/analyze-file           - AI file analysis
    /api/upload                    - Attachment upload
    /media/                        - Uploaded files (DEBUG only)

WebSocket routes live in chat.routing and are mounted by config.asgi.

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API Routes
# =============================================================================
# Routes are declared without trailing slashes
api_patterns = [
    path("auth/", include("authentication.urls")),
    path("", include("chat.urls")),
    path("ai/", include("ai.urls")),
    path("", include("uploads.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API
    path("api/", include(api_patterns)),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "AI Chat Admin"
admin.site.site_title = "AI Chat Admin Portal"
admin.site.index_title = "Chats, messages and users"
