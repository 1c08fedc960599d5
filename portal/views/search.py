"""
Global search endpoints.

``POST /api/search/global`` fans the query out to every enabled source and
returns ``{results}`` ranked by relevance; only administrators may call it.
``POST /api/search/suggestions`` returns the short name list used to
complete the search box.
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
from ..permissions import IsAdminRole
from ..serializers.search import GlobalSearchSerializer, SuggestionsSerializer
from ..services import search as search_service

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def global_search(request):
    ser = GlobalSearchSerializer(data=request.data)
    if not ser.is_valid():
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': ser.errors}},
                        status=status.HTTP_400_BAD_REQUEST)
    data = ser.validated_data
    filters = data.get('filters') or {}
    try:
        results = search_service.global_search(
            data.get('query', ''),
            types=filters.get('types'),
            projects=filters.get('projects'),
            limit=data.get('limit') or settings.SEARCH_DEFAULT_LIMIT,
        )
    except DatabaseError:
        logger.exception("global search failed for user %s", request.user.id)
        return server_error_response()
    return Response({'results': results})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def search_suggestions(request):
    ser = SuggestionsSerializer(data=request.data)
    if not ser.is_valid():
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': ser.errors}},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        names = search_service.suggestions(ser.validated_data.get('query', ''))
    except DatabaseError:
        logger.exception("search suggestions failed for user %s", request.user.id)
        return server_error_response()
    return Response({'suggestions': names})
