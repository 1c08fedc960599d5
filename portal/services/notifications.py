from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from portal.models import Alert, Communication, Notification
from portal.services.realtime import broadcast_notifications_update

logger = logging.getLogger(__name__)

User = get_user_model()

# PATCH ``type`` values accepted by ``mark_read``
READ_TYPES = ('notification', 'communication', 'alert')
GROUP_SAMPLE_SIZE = 5

SEVERITY_PRIORITY = {
    'critical': 100,
    'high': 90,
    'alta': 90,
    'medium': 70,
    'media': 70,
}


class UnknownReadType(ValueError):
    pass


def _system_item(n: Notification) -> dict:
    return {
        'id': str(n.id),
        'type': 'notification',
        'title': n.title,
        'message': n.message,
        'data': None,
        'read': n.is_read,
        'created_at': n.created_at.isoformat(),
        'source': 'system',
    }


def _communication_item(c: Communication) -> dict:
    return {
        'id': str(c.id),
        'type': c.type,
        'title': c.subject,
        'message': c.body,
        'data': {
            'communicationId': str(c.id),
            'type': c.type,
            'hospital_name': c.hospital.name if c.hospital else None,
            'project_name': c.project.name if c.project else None,
            'sender_name': c.sender.name if c.sender else None,
        },
        'read': c.read_at is not None,
        'created_at': (c.sent_at or c.created_at).isoformat(),
        'source': 'communication',
    }


def _alert_item(a: Alert) -> dict:
    return {
        'id': str(a.id),
        'type': 'alert',
        'title': a.title,
        'message': a.message,
        'data': {
            'alertId': str(a.id),
            'type': a.type,
            'severity': a.severity,
            'hospital_name': a.hospital.name if a.hospital else None,
            'project_name': a.project.name if a.project else None,
            'metadata': a.metadata,
        },
        # alerts have no read state and never count towards the badge
        'read': True,
        'created_at': a.created_at.isoformat(),
        'source': 'alert',
    }


def _priority(item: dict) -> int:
    if item['source'] == 'alert':
        severity = ((item.get('data') or {}).get('severity') or '').lower()
        return SEVERITY_PRIORITY.get(severity, 50)
    if item['source'] == 'communication':
        return 60
    return 40


def _created(item: dict) -> datetime:
    return datetime.fromisoformat(item['created_at'])


def _normalize(text: Optional[str]) -> str:
    return ' '.join((text or '').lower().split())


def group_notifications(items: list[dict], limit: int) -> list[dict]:
    """Collapse items sharing source, type, title, hospital and project.

    Groups are ordered by priority, then unread count, then recency.
    """
    groups: dict[str, dict] = {}
    for item in items:
        data = item.get('data') or {}
        key = '|'.join([
            item['source'],
            item['type'] or '',
            _normalize(item['title']),
            _normalize(data.get('hospital_name')),
            _normalize(data.get('project_name')),
        ])
        group = groups.get(key)
        if group is None:
            groups[key] = {
                'key': key,
                'source': item['source'],
                'type': item['type'],
                'title': item['title'],
                'sampleMessage': item['message'],
                'data': {
                    'hospital_name': data.get('hospital_name'),
                    'project_name': data.get('project_name'),
                },
                'count': 1,
                'unreadCount': 0 if item['read'] else 1,
                'latest_at': item['created_at'],
                'priority': _priority(item),
                'items': [item],
            }
            continue
        group['count'] += 1
        if not item['read']:
            group['unreadCount'] += 1
        if _created(item) > datetime.fromisoformat(group['latest_at']):
            group['latest_at'] = item['created_at']
            group['sampleMessage'] = item['message']
        group['priority'] = max(group['priority'], _priority(item))
        if len(group['items']) < GROUP_SAMPLE_SIZE:
            group['items'].append(item)

    ordered = sorted(groups.values(), key=lambda g: datetime.fromisoformat(g['latest_at']), reverse=True)
    ordered.sort(key=lambda g: (g['priority'], g['unreadCount']), reverse=True)
    return ordered[:limit]


def unread_count(user: User) -> int:
    """Unread system notifications plus unread communications, independent of any page limit."""
    system = Notification.objects.filter(user=user, is_read=False).count()
    comms = Communication.objects.filter(user=user, read_at__isnull=True).count()
    return system + comms


def list_notifications(user: User, *, limit: int, unread_only: bool = False, group: bool = False) -> dict:
    """Build the bell/inbox feed for ``user``.

    System notifications, unread communications and unresolved alerts for
    the user's hospital are merged newest first.
    """
    notifications = Notification.objects.filter(user=user)
    if unread_only:
        notifications = notifications.filter(is_read=False)
    notifications = notifications.order_by('-created_at')[:limit]

    communications = (
        Communication.objects.filter(user=user, read_at__isnull=True)
        .select_related('hospital', 'project', 'sender')
        .order_by('-created_at')[:limit]
    )

    alerts = Alert.objects.none()
    if getattr(user, 'hospital_id', None):
        alerts = (
            Alert.objects.filter(is_resolved=False, hospital_id=user.hospital_id)
            .select_related('hospital', 'project')
            .order_by('-created_at')[:limit]
        )

    items = [_system_item(n) for n in notifications]
    items += [_communication_item(c) for c in communications]
    items += [_alert_item(a) for a in alerts]
    items.sort(key=_created, reverse=True)

    payload = {
        'success': True,
        'notifications': group_notifications(items, limit) if group else items[:limit],
        'unreadCount': unread_count(user),
        'total': len(items),
        'grouped': bool(group),
    }
    return payload


def mark_read(user: User, item_id, read_type: str) -> bool:
    """Mark one item read in the table ``read_type`` points at.

    Returns False when the item does not exist for this user.  Alerts
    are accepted and left untouched.
    """
    if read_type not in READ_TYPES:
        raise UnknownReadType(read_type)
    if read_type == 'alert':
        return True
    if not str(item_id).isdigit():
        return False

    if read_type == 'notification':
        updated = Notification.objects.filter(id=item_id, user=user).update(is_read=True)
    else:
        comm = Communication.objects.filter(id=item_id, user=user).first()
        if comm is None:
            updated = 0
        else:
            if comm.read_at is None:
                comm.read_at = timezone.now()
                comm.save(update_fields=['read_at'])
            updated = 1

    if not updated:
        return False
    logger.info("user %s marked %s %s as read", user.id, read_type, item_id)
    broadcast_notifications_update(user.id)
    return True


def mark_all_read(user: User) -> int:
    """Mark every unread system notification of ``user`` as read."""
    updated = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.info("user %s marked %d notifications as read", user.id, updated)
    broadcast_notifications_update(user.id)
    return updated
