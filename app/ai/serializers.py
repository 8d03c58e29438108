"""
Serializers for the AI endpoints.

Request fields keep the camelCase names the web client sends.

Serializer Hierarchy:
    AIMessageRequestSerializer: POST body / GET query of /api/ai/message
    FileAnalysisRequestSerializer: POST /api/ai/analyze-file
    FileAnalysisSerializer: Analysis result

Blank and missing values pass input validation so ChatCompletionService
can answer with its own error message.
"""

from __future__ import annotations

from rest_framework import serializers


class AIMessageRequestSerializer(serializers.Serializer):
    """Input for a blocking or streamed AI reply."""

    chatId = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Chat the reply belongs to",
    )
    message = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="The user's new message",
    )


class FileAnalysisRequestSerializer(serializers.Serializer):
    """Input for analyzing a file's text."""

    fileContent = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="Raw file text; long content is truncated",
    )
    fileName = serializers.CharField(required=False, allow_blank=True, default="")
    fileType = serializers.CharField(required=False, allow_blank=True, default="")


class FileAnalysisSerializer(serializers.Serializer):
    """Analysis returned to the client."""

    fileName = serializers.CharField()
    fileType = serializers.CharField()
    analysis = serializers.CharField()
