from typing import Optional

from django.contrib.auth import get_user_model

from portal.models import Communication

User = get_user_model()


def format_communication(c: Communication) -> dict:
    return {
        'id': str(c.id),
        'type': c.type,
        'subject': c.subject,
        'body': c.body,
        'sent_at': c.sent_at.isoformat() if c.sent_at else None,
        'read_at': c.read_at.isoformat() if c.read_at else None,
        'created_at': c.created_at.isoformat(),
        'hospitals': {'name': c.hospital.name, 'city': c.hospital.city, 'province': c.hospital.province} if c.hospital else None,
        'projects': {'name': c.project.name} if c.project else None,
        'sender': {'name': c.sender.name, 'email': c.sender.email} if c.sender else None,
        'alert': {'title': c.alert.title, 'severity': c.alert.severity} if c.alert else None,
    }


def list_communications_for_user(user_id, *, type: Optional[str] = None, read: Optional[bool] = None,
                                 page: int = 1, limit: int = 25) -> list[dict]:
    """Return one page of a user's communication log, newest first."""
    qs = Communication.objects.filter(user_id=user_id)
    if type:
        qs = qs.filter(type=type)
    if read is not None:
        qs = qs.filter(read_at__isnull=not read)
    page = max(1, int(page or 1))
    limit = min(100, max(1, int(limit or 25)))
    start = (page - 1) * limit
    items = qs.select_related('hospital', 'project', 'sender', 'alert').order_by('-created_at', '-id')[start:start + limit]
    return [format_communication(c) for c in items]
