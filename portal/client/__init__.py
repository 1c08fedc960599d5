"""
Async client for the EPIC-Q portal API.

Plays the part of the browser components: the global search box
(``GlobalSearchClient``, ``SearchHistory``, ``SearchDebouncer``), the
coordinator inbox (``InboxAggregator``) and the header bell, kept in step
through a ``NotificationsBus``.
"""
from .api import API_ERRORS, ApiClient, ApiError
from .config import ClientConfig
from .events import NOTIFICATIONS_UPDATE, NotificationsBus, NotificationsChanged
from .inbox import (
    AlertItem,
    CommunicationItem,
    InboxAggregator,
    NotificationBell,
    SystemItem,
    normalize_alert,
    normalize_communication,
    normalize_feed_item,
    normalize_system,
    time_ago,
)
from .search import GlobalSearchClient, SearchDebouncer, SearchHistory, format_result
from .ws import NotificationsSocket
from .storage import LocalStorage, Preferences

__all__ = [
    "API_ERRORS", "ApiClient", "ApiError", "ClientConfig",
    "NOTIFICATIONS_UPDATE", "NotificationsBus", "NotificationsChanged",
    "AlertItem", "CommunicationItem", "InboxAggregator", "NotificationBell", "SystemItem",
    "normalize_alert", "normalize_communication", "normalize_feed_item", "normalize_system",
    "time_ago", "GlobalSearchClient", "SearchDebouncer", "SearchHistory", "format_result",
    "NotificationsSocket", "LocalStorage", "Preferences",
]
