"""
API view for attachment uploads.

Endpoints:
    POST /api/upload - Store a file, returns its attachment descriptor
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import failure_response
from uploads.serializers import StoredFileSerializer, UploadSerializer
from uploads.services import UploadService


class UploadView(APIView):
    """
    Handle attachment uploads.

    POST /api/upload

    Request:
        Content-Type: multipart/form-data
        - file (required): The file to upload

    Response:
        201 Created: {"success": true, "data": {filename, path, mimetype}}
        400 Bad Request: Missing file, too large, or extension not allowed
        401 Unauthorized: Not authenticated
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        operation_id="upload_file",
        summary="Upload attachment",
        tags=["Uploads"],
        request={"multipart/form-data": UploadSerializer},
        responses={
            201: StoredFileSerializer,
            400: OpenApiResponse(description="Invalid file"),
        },
    )
    def post(self, request):
        serializer = UploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UploadService.store(serializer.validated_data["file"])
        if not result.success:
            return failure_response(result)

        return Response(
            {"success": True, "data": StoredFileSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )
