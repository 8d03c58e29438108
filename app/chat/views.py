"""
Views for the chat REST API.

URL Structure:
    /api/chat                      GET (list), POST (create)
    /api/chat/<id>                 GET (detail), PATCH (rename), DELETE
    /api/chat/<id>/messages        POST (append), GET (?lastMessageId=)

Every response uses the {"success": ..., "data": ...} envelope; failures
come from ServiceResult.to_response() with the status mapped from the
error code. Successful appends and renames are pushed to websocket
clients through chat.broadcast.
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.broadcast import broadcast_chat_updated, broadcast_new_message
from chat.serializers import (
    ChatCreateSerializer,
    ChatDetailSerializer,
    ChatSerializer,
    ChatUpdateSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    MessagesSinceSerializer,
)
from chat.services import ChatService
from core.views import failure_response


class ChatViewSet(viewsets.ViewSet):
    """
    Chat CRUD for the authenticated user.

    Only participants can read, rename, delete or post to a chat. An
    unknown id is reported as 404 before participation is checked.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_chats",
        summary="List chats",
        tags=["Chat - Chats"],
        responses={200: ChatSerializer(many=True)},
    )
    def list(self, request):
        """List the user's chats, most recently updated first."""
        result = ChatService.list_chats(request.user)
        if not result.success:
            return failure_response(result)

        data = ChatSerializer(result.data, many=True).data
        return Response({"success": True, "count": len(data), "data": data})

    @extend_schema(
        operation_id="create_chat",
        summary="Create chat",
        tags=["Chat - Chats"],
        request=ChatCreateSerializer,
        responses={
            201: ChatSerializer,
            400: OpenApiResponse(description="Unknown participant ids or invalid title"),
        },
    )
    def create(self, request):
        """Create a chat with the current user as participant."""
        serializer = ChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatService.create_chat(
            user=request.user,
            title=serializer.validated_data.get("title"),
            participant_ids=serializer.validated_data["participant_ids"],
        )
        if not result.success:
            return failure_response(result)

        return Response(
            {"success": True, "data": ChatSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="get_chat",
        summary="Get chat with messages",
        tags=["Chat - Chats"],
        responses={
            200: ChatDetailSerializer,
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Chat not found"),
        },
    )
    def retrieve(self, request, pk=None):
        """Get a chat and its messages in chronological order."""
        result = ChatService.get_chat(pk, request.user)
        if not result.success:
            return failure_response(result)

        return Response({"success": True, "data": ChatDetailSerializer(result.data).data})

    @extend_schema(
        operation_id="update_chat",
        summary="Rename chat",
        tags=["Chat - Chats"],
        request=ChatUpdateSerializer,
        responses={
            200: ChatSerializer,
            400: OpenApiResponse(description="Title is required"),
            409: OpenApiResponse(description="expected_version does not match"),
        },
    )
    def partial_update(self, request, pk=None):
        """Rename a chat and notify participants."""
        serializer = ChatUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatService.rename_chat(
            pk,
            request.user,
            serializer.validated_data.get("title"),
            expected_version=serializer.validated_data.get("expected_version"),
        )
        if not result.success:
            return failure_response(result)

        broadcast_chat_updated(result.data)
        return Response({"success": True, "data": ChatSerializer(result.data).data})

    @extend_schema(
        operation_id="delete_chat",
        summary="Delete chat",
        tags=["Chat - Chats"],
        responses={
            200: OpenApiResponse(description="Chat deleted successfully"),
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Chat not found"),
        },
    )
    def destroy(self, request, pk=None):
        """Delete a chat with all of its messages."""
        result = ChatService.delete_chat(pk, request.user)
        if not result.success:
            return failure_response(result)

        return Response({"success": True, "message": "Chat deleted successfully"})


class ChatMessagesViewSet(viewsets.ViewSet):
    """Append messages and fetch the messages a client has not seen yet."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_chat_messages",
        summary="List messages since",
        description=(
            "Messages strictly after lastMessageId in chronological order. "
            "Without lastMessageId the full history is returned; an id from "
            "another chat returns an empty list."
        ),
        tags=["Chat - Messages"],
        parameters=[
            OpenApiParameter(
                "lastMessageId",
                OpenApiTypes.INT,
                OpenApiParameter.QUERY,
                required=False,
            )
        ],
        responses={200: MessageSerializer(many=True)},
    )
    def list(self, request, chat_pk=None):
        query = MessagesSinceSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = ChatService.messages_since(
            chat_pk,
            request.user,
            query.validated_data.get("lastMessageId"),
        )
        if not result.success:
            return failure_response(result)

        data = MessageSerializer(result.data, many=True).data
        return Response({"success": True, "count": len(data), "data": data})

    @extend_schema(
        operation_id="create_chat_message",
        summary="Send message",
        tags=["Chat - Messages"],
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Message content is required"),
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Chat not found"),
        },
    )
    def create(self, request, chat_pk=None):
        """Append a message and push it to websocket clients."""
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatService.append_message(
            chat_pk,
            request.user,
            serializer.validated_data["content"],
            attachments=serializer.validated_data["attachments"],
        )
        if not result.success:
            return failure_response(result)

        message = result.data
        broadcast_new_message(message.chat, message)

        return Response(
            {"success": True, "data": MessageSerializer(message).data},
            status=status.HTTP_201_CREATED,
        )
