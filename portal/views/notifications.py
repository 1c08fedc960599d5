"""
Notification bell / inbox endpoint.

``GET`` lists the merged feed, ``PATCH {notificationId, type}`` marks one
item read in the table ``type`` points at, and ``POST {action}`` runs a
bulk action (only ``markAllAsRead`` is supported).
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import server_error_response
from ..serializers.notifications import (
    MarkReadSerializer,
    NotificationActionSerializer,
    NotificationListQuerySerializer,
)
from ..services import notifications as notification_service

logger = logging.getLogger(__name__)


def _bad_request(message):
    return Response({'ok': False, 'error': {'code': 'invalid', 'message': message}},
                    status=status.HTTP_400_BAD_REQUEST)


def _list(request):
    ser = NotificationListQuerySerializer(data=request.query_params.dict())
    if not ser.is_valid():
        return _bad_request(ser.errors)
    params = ser.validated_data
    payload = notification_service.list_notifications(
        request.user,
        limit=params.get('limit') or settings.NOTIFICATIONS_DEFAULT_LIMIT,
        unread_only=params['unreadOnly'],
        group=params['group'],
    )
    return Response(payload)


def _mark_read(request):
    ser = MarkReadSerializer(data=request.data)
    if not ser.is_valid():
        return _bad_request('notificationId y type son requeridos')
    item_id = ser.validated_data['notificationId']
    read_type = ser.validated_data['type']
    try:
        found = notification_service.mark_read(request.user, item_id, read_type)
    except notification_service.UnknownReadType:
        return _bad_request('Tipo de notificación no válido')
    if not found:
        return Response({'ok': False, 'error': {'code': 'not_found', 'message': 'Notificación no encontrada'}},
                        status=status.HTTP_404_NOT_FOUND)
    return Response({'success': True})


def _action(request):
    ser = NotificationActionSerializer(data=request.data)
    if not ser.is_valid():
        return _bad_request(ser.errors)
    if ser.validated_data['action'] != 'markAllAsRead':
        return _bad_request('Acción no válida')
    updated = notification_service.mark_all_read(request.user)
    return Response({'success': True, 'updated': updated})


@api_view(['GET', 'PATCH', 'POST'])
@permission_classes([IsAuthenticated])
def notifications(request):
    handler = {'GET': _list, 'PATCH': _mark_read, 'POST': _action}[request.method]
    try:
        return handler(request)
    except DatabaseError:
        logger.exception("notifications %s failed for user %s", request.method, request.user.id)
        return server_error_response()
