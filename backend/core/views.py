"""
Core app views.

Constants are public so the login screen can render before a token
exists.  The notification inbox is per-user; there is no way to read or
mark another user's notifications.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import NotificationSerializer, SystemConstantsSerializer
from .services import NotificationService, SystemConstantsService


class SystemConstantsView(APIView):
    """Choice enumerations and field limits for the transfer and status forms."""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description=(
            "Return complaint statuses, transfer reasons, transfer statuses, "
            "connection types, access levels and field limits."
        ),
        responses={200: SystemConstantsSerializer},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        serializer = SystemConstantsSerializer(SystemConstantsService.get_constants())
        return Response(serializer.data)


class NotificationViewSet(viewsets.ViewSet):
    """
    Transfer and status notifications for the authenticated user.

    ``list`` accepts ``?unread=true``.  ``read`` marks one notification,
    ``read-all`` marks the whole inbox.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        parameters=[
            OpenApiParameter(
                name="unread",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only return unread notifications.",
            ),
        ],
        responses={200: NotificationSerializer(many=True)},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true")
        notifications = NotificationService(request.user).list_notifications(unread_only=unread_only)
        return Response(NotificationSerializer(notifications, many=True).data)

    @action(detail=True, methods=["post"], url_path="read")
    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="No such notification in the caller's inbox."),
        },
        tags=["Notifications"],
    )
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        notification = NotificationService(request.user).mark_as_read(notification_id=pk)
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={
            200: OpenApiResponse(description="`{\"marked\": <count>}`"),
        },
        tags=["Notifications"],
    )
    def mark_all_as_read(self, request: Request) -> Response:
        marked = NotificationService(request.user).mark_all_as_read()
        return Response({"marked": marked}, status=status.HTTP_200_OK)
