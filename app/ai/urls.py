"""
URL configuration for AI app.

Routes (mounted at /api/ai/):
    message       - POST blocking reply, GET SSE stream
    analyze-file  - POST file analysis
"""

from django.urls import path

from . import views

app_name = "ai"

urlpatterns = [
    path("message", views.AIMessageView.as_view(), name="message"),
    path("analyze-file", views.FileAnalysisView.as_view(), name="analyze-file"),
]
