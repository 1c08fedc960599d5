"""
Per-user communication log.

Coordinators only ever see their own log; an explicit ``userId`` naming
someone else is refused.  Administrators may read any user's log.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import is_admin
from ..serializers.notifications import CommunicationListQuerySerializer
from ..services.communications import list_communications_for_user


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_communications(request):
    ser = CommunicationListQuerySerializer(data=request.query_params.dict())
    if not ser.is_valid():
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': ser.errors}},
                        status=status.HTTP_400_BAD_REQUEST)
    params = ser.validated_data
    user_id = params.get('userId') or request.user.id
    if user_id != request.user.id and not is_admin(request.user):
        return Response({'ok': False, 'error': {'code': 'forbidden', 'message': 'No autorizado'}},
                        status=status.HTTP_403_FORBIDDEN)
    items = list_communications_for_user(
        user_id,
        type=params.get('type'),
        read=params.get('read'),
        page=params['page'],
        limit=params.get('limit') or settings.COMMUNICATIONS_DEFAULT_LIMIT,
    )
    return Response({'communications': items})
