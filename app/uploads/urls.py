"""
URL configuration for uploads app.

Routes (mounted at /api/):
    upload - POST attachment upload
"""

from django.urls import path

from uploads.views import UploadView

app_name = "uploads"

urlpatterns = [
    path("upload", UploadView.as_view(), name="upload"),
]
