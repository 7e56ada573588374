import asyncio
import json
import logging

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse, StreamingHttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET
from rest_framework import generics
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdminRole
from users.tokens import StreamTokenError, issue_stream_token, verify_stream_token
from .events import ADMIN_TOPICS, EventBroadcaster, get_broadcaster
from .models import AdminNotification
from .serializers import AdminNotificationSerializer
from .services import AdminNotificationService

logger = logging.getLogger(__name__)


# ============================================================================
# Admin notification feed
# ============================================================================


class AdminNotificationListView(generics.ListAPIView):
    """
    Admin notification feed, newest first. ?unread_only=true hides the
    notifications the caller has already read.
    """

    serializer_class = AdminNotificationSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        queryset = AdminNotification.objects.all()
        notification_type = self.request.query_params.get("type")
        if notification_type:
            queryset = queryset.filter(type=notification_type)

        if self.request.query_params.get("unread_only", "").lower() in ("1", "true", "yes"):
            return AdminNotificationService.unread_for(self.request.user, queryset)
        return queryset


class MarkNotificationReadView(APIView):
    permission_classes = [IsAdminRole]

    def post(self, request, pk):
        notification = get_object_or_404(AdminNotification, pk=pk)
        notification = AdminNotificationService.mark_read(notification, request.user)
        serializer = AdminNotificationSerializer(notification, context={"request": request})
        return Response(serializer.data)


# ============================================================================
# Admin order stream (server-sent events)
# ============================================================================


class StreamTokenView(APIView):
    """
    Exchanges an admin session for a short-lived token accepted only by the
    order stream. EventSource cannot send headers, so the token travels as a
    query parameter.
    """

    permission_classes = [IsAdminRole]

    def post(self, request):
        token = issue_stream_token(request.user)
        logger.info(f"Issued order stream token for admin {request.user.id}")
        return Response({"token": token, "expiresIn": settings.ORDER_STREAM_TOKEN_TTL_SECONDS})


def format_sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, cls=DjangoJSONEncoder)}\n\n"


async def stream_events(broadcaster: EventBroadcaster, heartbeat: float, user=None):
    """
    Yields SSE frames: connected first, then subscribed events, with a ping
    every `heartbeat` seconds whether or not events are flowing. Leaving the
    generator (client disconnect, aclose, cancellation) unsubscribes.
    """
    async with broadcaster.subscribe(*ADMIN_TOPICS) as subscription:
        yield format_sse(
            "connected",
            {
                "userId": user.id if user is not None else None,
                "topics": list(subscription.topics),
                "timestamp": timezone.now().isoformat(),
            },
        )
        loop = asyncio.get_running_loop()
        next_ping = loop.time() + heartbeat
        while True:
            event = await subscription.receive(timeout=max(next_ping - loop.time(), 0))
            if event is not None:
                yield format_sse(event.topic, event.payload)
            if loop.time() >= next_ping:
                yield format_sse("ping", {"timestamp": timezone.now().isoformat()})
                next_ping = loop.time() + heartbeat


@require_GET
async def admin_orders_stream(request):
    token = request.GET.get("token")
    try:
        user = await sync_to_async(verify_stream_token)(token)
    except StreamTokenError as e:
        logger.warning(f"Order stream rejected ({e.status_code}): {e}")
        return JsonResponse({"error": str(e), "code": "invalid_stream_token"}, status=e.status_code)

    logger.info(f"Admin {user.id} connected to the order stream")
    response = StreamingHttpResponse(
        stream_events(get_broadcaster(), settings.ORDER_STREAM_HEARTBEAT_SECONDS, user),
        content_type="text/event-stream",
    )
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    return response
