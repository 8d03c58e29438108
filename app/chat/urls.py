"""
URL configuration for chat API.

URL Structure:
    chat                 GET (list), POST (create)
    chat/<id>            GET, PATCH, DELETE
    chat/<id>/messages   GET (?lastMessageId=), POST

Mounted under /api/ in the main URL configuration (no trailing slashes).
"""

from django.urls import path

from chat.views import ChatMessagesViewSet, ChatViewSet

app_name = "chat"

urlpatterns = [
    path(
        "chat",
        ChatViewSet.as_view({"get": "list", "post": "create"}),
        name="chat-list",
    ),
    path(
        "chat/<int:pk>",
        ChatViewSet.as_view(
            {"get": "retrieve", "patch": "partial_update", "delete": "destroy"}
        ),
        name="chat-detail",
    ),
    path(
        "chat/<int:chat_pk>/messages",
        ChatMessagesViewSet.as_view({"get": "list", "post": "create"}),
        name="chat-messages",
    ),
]
