"""
URL mappings for the portal API.

Trailing slashes are omitted on purpose; ``APPEND_SLASH`` is off.
"""
from django.urls import include, path

from .views import health
from .views.communications import list_communications
from .views.notifications import notifications
from .views.search import global_search, search_suggestions

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Search
    path('api/search/global', global_search),
    path('api/search/suggestions', search_suggestions),
    # Inbox
    path('api/notifications', notifications),
    path('api/communications', list_communications),
]
