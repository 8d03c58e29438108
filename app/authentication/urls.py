"""
URL configuration for authentication app.

URL structure (mounted at /api/auth/):
    register  - Create account, returns JWT pair (custom)
    login     - Email/password login (dj-rest-auth, JWT)
    logout    - Blacklist refresh token (dj-rest-auth)
    me        - Current user GET/PUT/PATCH (dj-rest-auth)
"""

from dj_rest_auth.views import LoginView, LogoutView, UserDetailsView
from django.urls import path

from authentication.views import RegisterView

app_name = "authentication"

urlpatterns = [
    path("register", RegisterView.as_view(), name="register"),
    path("login", LoginView.as_view(), name="login"),
    path("logout", LogoutView.as_view(), name="logout"),
    path("me", UserDetailsView.as_view(), name="me"),
]
