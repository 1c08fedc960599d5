"""
Coordinator inbox: one feed out of system notifications, communications
and alerts.

Records from each source are normalised into a tagged union
(``SystemItem | CommunicationItem | AlertItem``, discriminated by
``kind``).  An item's ``id`` is only unique inside its source, so the
identity key is ``(kind, id)``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from .api import API_ERRORS, ApiClient
from .events import NotificationsBus, NotificationsChanged

logger = logging.getLogger(__name__)

NOTIFICATIONS_PATH = "/api/notifications"
COMMUNICATIONS_PATH = "/api/communications"
NOTIFICATIONS_LIMIT = 50
COMMUNICATIONS_LIMIT = 100
SOURCES = ("communication", "system", "alert")


@dataclass
class _Item:
    id: str
    title: str
    message: str
    created_at: str
    read: bool

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind, self.id)

    @property
    def source(self) -> str:
        return self.kind


@dataclass
class SystemItem(_Item):
    kind: str = field(default="system", init=False)


@dataclass
class CommunicationItem(_Item):
    kind: str = field(default="communication", init=False)


@dataclass
class AlertItem(_Item):
    severity: Optional[str] = None
    kind: str = field(default="alert", init=False)


InboxItem = Union[SystemItem, CommunicationItem, AlertItem]


def normalize_system(raw: dict) -> SystemItem:
    return SystemItem(
        id=str(raw["id"]),
        title=raw.get("title") or "",
        message=raw.get("message") or "",
        created_at=raw.get("created_at") or "",
        read=bool(raw.get("read")),
    )


def normalize_communication(raw: dict) -> CommunicationItem:
    """Accept both a feed entry (title/message/read) and a log entry (subject/body/read_at)."""
    if "read_at" in raw:
        read = raw.get("read_at") is not None
    else:
        read = bool(raw.get("read"))
    return CommunicationItem(
        id=str(raw["id"]),
        title=raw.get("subject") or raw.get("title") or "Comunicación",
        message=raw.get("body") or raw.get("message") or "",
        created_at=raw.get("sent_at") or raw.get("created_at") or "",
        read=read,
    )


def normalize_alert(raw: dict) -> AlertItem:
    data = raw.get("data") or {}
    return AlertItem(
        id=str(raw["id"]),
        title=raw.get("title") or "",
        message=raw.get("message") or "",
        created_at=raw.get("created_at") or "",
        # alerts carry no read state
        read=True,
        severity=data.get("severity"),
    )


NORMALIZERS = {
    "system": normalize_system,
    "communication": normalize_communication,
    "alert": normalize_alert,
}


def normalize_feed_item(raw: dict) -> InboxItem:
    """Normalise one ``GET /api/notifications`` entry by its ``source`` (default ``system``)."""
    normalize = NORMALIZERS.get(raw.get("source") or "system", normalize_system)
    return normalize(raw)


def parse_timestamp(value) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_ago(iso: Optional[str], now: Optional[datetime] = None) -> str:
    """Render ``iso`` as Hace N min / h / d; empty string when missing or unparseable."""
    created = parse_timestamp(iso)
    if created is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    # server clock ahead of ours reads as just now
    minutes = max(0, int((now - created).total_seconds() // 60))
    if minutes < 60:
        return f"Hace {minutes} min"
    hours = minutes // 60
    if hours < 24:
        return f"Hace {hours} h"
    return f"Hace {hours // 24} d"


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(items: list[InboxItem]) -> list[InboxItem]:
    return sorted(items, key=lambda i: parse_timestamp(i.created_at) or _OLDEST, reverse=True)


class InboxAggregator:
    """Local copy of one user's inbox.

    ``load()`` fetches both sources concurrently; a source that fails is
    treated as empty.  ``mark_as_read`` updates the local copy before the
    network call and never rolls it back.
    """

    def __init__(self, api: ApiClient, user_id, bus: NotificationsBus):
        self.api = api
        self.user_id = user_id
        self.bus = bus
        self._items: list[InboxItem] = []
        self.communication_log: list[dict] = []

    async def _fetch_notifications(self) -> list[dict]:
        try:
            data = await self.api.get(NOTIFICATIONS_PATH, {"limit": NOTIFICATIONS_LIMIT})
        except API_ERRORS:
            logger.warning("could not load notifications", exc_info=True)
            return []
        rows = data.get("notifications") if isinstance(data, dict) else None
        return [r for r in rows or [] if isinstance(r, dict) and "id" in r]

    async def _fetch_communications(self) -> list[dict]:
        params = {"userId": self.user_id, "page": 1, "limit": COMMUNICATIONS_LIMIT}
        try:
            data = await self.api.get(COMMUNICATIONS_PATH, params)
        except API_ERRORS:
            logger.warning("could not load communications", exc_info=True)
            return []
        rows = data.get("communications") if isinstance(data, dict) else None
        return [r for r in rows or [] if isinstance(r, dict) and "id" in r]

    async def load(self) -> list[InboxItem]:
        feed, log = await asyncio.gather(self._fetch_notifications(), self._fetch_communications())
        merged: dict[tuple[str, str], InboxItem] = {}
        for item in [normalize_feed_item(r) for r in feed] + [normalize_communication(r) for r in log]:
            merged.setdefault(item.key, item)
        self._items = _newest_first(list(merged.values()))
        self.communication_log = log
        logger.debug("inbox loaded: %d feed, %d communications, %d merged",
                     len(feed), len(log), len(self._items))
        return self.items

    def refresh(self):
        return self.load()

    @property
    def items(self) -> list[InboxItem]:
        return list(self._items)

    def filtered(self, search: str = "", source: str = "all") -> list[InboxItem]:
        term = (search or "").lower()
        out = []
        for item in self._items:
            if source != "all" and item.kind != source:
                continue
            if term and term not in item.title.lower() and term not in item.message.lower():
                continue
            out.append(item)
        return out

    @property
    def communications(self) -> list[InboxItem]:
        return self.filtered(source="communication")

    @property
    def system(self) -> list[InboxItem]:
        return self.filtered(source="system")

    @property
    def alerts(self) -> list[InboxItem]:
        return self.filtered(source="alert")

    @property
    def unread_count(self) -> int:
        # alerts are never counted
        return sum(1 for i in self._items if not i.read and i.kind in ("system", "communication"))

    async def mark_as_read(self, item: InboxItem) -> bool:
        """Mark ``item`` read locally, tell the server, then broadcast.

        Alerts are left alone and no request is made.
        """
        if item.kind == "alert":
            return False
        for local in self._items:
            if local.key == item.key:
                local.read = True
        item.read = True
        body = {
            "notificationId": item.id,
            "type": "communication" if item.kind == "communication" else "notification",
        }
        try:
            await self.api.patch(NOTIFICATIONS_PATH, body)
        except API_ERRORS:
            logger.warning("mark-as-read of %s %s failed, keeping local state", item.kind, item.id,
                           exc_info=True)
        self.bus.publish(NotificationsChanged())
        return True

    async def mark_all_as_read(self) -> bool:
        try:
            await self.api.post(NOTIFICATIONS_PATH, {"action": "markAllAsRead"})
        except API_ERRORS:
            logger.warning("mark-all-as-read failed", exc_info=True)
            return False
        for item in self._items:
            if item.kind == "system":
                item.read = True
        self.bus.publish(NotificationsChanged())
        return True


class NotificationBell:
    """Header badge: unread count and grouped summaries, re-fetched on every bus event."""

    def __init__(self, api: ApiClient, *, limit: int = 10):
        self.api = api
        self.limit = limit
        self.unread_count = 0
        self.groups: list[dict] = []

    async def refresh(self) -> None:
        try:
            data = await self.api.get(NOTIFICATIONS_PATH, {"limit": self.limit, "group": "true"})
        except API_ERRORS:
            logger.warning("could not refresh notification bell", exc_info=True)
            return
        if not isinstance(data, dict):
            logger.warning("unexpected notification bell payload: %r", type(data).__name__)
            return
        self.unread_count = int(data.get("unreadCount") or 0)
        self.groups = data.get("notifications") or []
