"""
DRF views for AI app.

Endpoints:
    POST /api/ai/message       - Blocking reply stored as an AI message
    GET  /api/ai/message       - Reply streamed as server-sent events
    POST /api/ai/analyze-file  - Summary of a file's text

AI failures never surface as errors: replies and analyses fall back to a
fixed text and the response carries a ``warning`` instead.
"""

from __future__ import annotations

import json
import logging

from django.http import StreamingHttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import BaseRenderer, JSONRenderer
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.broadcast import broadcast_new_message
from chat.serializers import MessageSerializer
from core.views import failure_response

from .authentication import QueryParamJWTAuthentication
from .constants import FALLBACKS
from .serializers import (
    AIMessageRequestSerializer,
    FileAnalysisRequestSerializer,
    FileAnalysisSerializer,
)
from .services import ChatCompletionService

logger = logging.getLogger(__name__)


class EventStreamRenderer(BaseRenderer):
    """
    Lets requests with ``Accept: text/event-stream`` pass content negotiation.

    Stream bodies bypass renderers; only error envelopes end up here.
    """

    media_type = "text/event-stream"
    format = "event-stream"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return json.dumps(data).encode(self.charset)


class AIMessageView(APIView):
    """
    AI reply for a chat.

    POST /api/ai/message
        Body: {"chatId": 12, "message": "What did we decide?"}
        Returns: {"success": true, "data": <message>[, "warning": ...]}

    GET /api/ai/message?chatId=12&message=...[&token=<jwt>]
        Returns: text/event-stream of
            data: {"content": "..."}
            ...
            data: [DONE]
    """

    permission_classes = [IsAuthenticated]
    authentication_classes = [QueryParamJWTAuthentication]
    renderer_classes = [JSONRenderer, EventStreamRenderer]

    @extend_schema(
        operation_id="ai_reply",
        summary="Get AI reply",
        tags=["AI"],
        request=AIMessageRequestSerializer,
        responses={
            200: MessageSerializer,
            400: OpenApiResponse(description="Message and chat ID are required"),
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Chat not found"),
        },
    )
    def post(self, request):
        serializer = AIMessageRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatCompletionService.reply(
            serializer.validated_data.get("chatId"),
            request.user,
            serializer.validated_data.get("message"),
        )
        if not result.success:
            return failure_response(result)

        outcome = result.data
        broadcast_new_message(outcome.message.chat, outcome.message)

        body = {"success": True, "data": MessageSerializer(outcome.message).data}
        if outcome.used_fallback:
            body["warning"] = FALLBACKS.WARNING
        return Response(body)

    @extend_schema(
        operation_id="ai_reply_stream",
        summary="Stream AI reply",
        description=(
            "Server-sent events. Each fragment is sent as "
            '`data: {"content": "..."}`; the stream ends with `data: [DONE]`. '
            "The access token may be passed as ?token= for EventSource clients."
        ),
        tags=["AI"],
        parameters=[
            OpenApiParameter("chatId", OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter("message", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter(
                "token", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False
            ),
        ],
        responses={(200, "text/event-stream"): OpenApiTypes.STR},
    )
    def get(self, request):
        serializer = AIMessageRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        prepared = ChatCompletionService.prepare(
            serializer.validated_data.get("chatId"),
            request.user,
            serializer.validated_data.get("message"),
        )
        if not prepared.success:
            return failure_response(prepared)

        chat, context = prepared.data
        logger.info(f"Streaming AI reply for chat {chat.pk} to user {request.user.pk}")

        response = StreamingHttpResponse(
            ChatCompletionService.stream_reply(chat, context),
            content_type="text/event-stream",
        )
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response


class FileAnalysisView(APIView):
    """
    Analyze a file's text.

    POST /api/ai/analyze-file
        Body: {"fileContent": "...", "fileName": "notes.md", "fileType": "markdown"}
        Returns: {"success": true, "data": {fileName, fileType, analysis}[, "warning": ...]}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="ai_analyze_file",
        summary="Analyze file",
        tags=["AI"],
        request=FileAnalysisRequestSerializer,
        responses={
            200: FileAnalysisSerializer,
            400: OpenApiResponse(description="File content is required"),
        },
    )
    def post(self, request):
        serializer = FileAnalysisRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatCompletionService.analyze_file(
            serializer.validated_data.get("fileContent"),
            file_name=serializer.validated_data["fileName"],
            file_type=serializer.validated_data["fileType"],
        )
        if not result.success:
            return failure_response(result)

        outcome = result.data
        body = {"success": True, "data": outcome.to_dict()}
        if outcome.used_fallback:
            body["warning"] = FALLBACKS.WARNING
        return Response(body)
