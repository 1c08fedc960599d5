"""
Global search across projects, hospitals, coordinators, alerts and
communications.

Each source runs its own case-insensitive substring pre-filter against
the database, capped per source, and its records are normalised into a
common ``SearchResult`` dict.  ``calculate_score`` then re-ranks the
pre-filtered sample; ordering is therefore only meaningful inside the
candidates each source returned, not across the whole corpus.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Optional

import bleach
from django.conf import settings
from django.db.models import Q

from portal.models import Alert, Communication, Hospital, Project, User
from portal.services.scoring import best_score, calculate_score, highlight_text, rank_results

logger = logging.getLogger(__name__)

SEARCH_TYPES = ('project', 'hospital', 'coordinator', 'alert', 'communication')
DESCRIPTION_MAX = 100
URL_PREFIX = '/es/admin'


def _enabled(kind: str, types: Optional[Iterable[str]]) -> bool:
    return not types or kind in types


def _cap(limit: int, share: int) -> int:
    return max(1, math.ceil(limit / share))


def _truncate(text: str, size: int = DESCRIPTION_MAX) -> str:
    text = text or ''
    return text[:size] + ('...' if len(text) > size else '')


def _strip_tags(text: str) -> str:
    return bleach.clean(text or '', tags=set(), strip=True)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _url(kind: str, pk) -> str:
    return f"{URL_PREFIX}/{kind}s/{pk}"


# ---------------------------------------------------------------------------
# Per-source fetch + normalise
# ---------------------------------------------------------------------------

def search_projects(query: str, *, cap: int, project_ids: Optional[list] = None) -> list[dict]:
    qs = Project.objects.filter(name__icontains=query).only('id', 'name', 'description', 'status', 'created_at')
    if project_ids:
        qs = qs.filter(id__in=project_ids)
    results = []
    for project in qs.order_by('id')[:cap]:
        results.append({
            'id': str(project.id),
            'type': 'project',
            'title': project.name,
            'description': project.description or 'Sin descripción',
            'url': _url('project', project.id),
            'metadata': {
                'status': project.status,
                'created_at': _iso(project.created_at),
            },
            'score': calculate_score(project.name, query),
        })
    return results


def search_hospitals(query: str, *, cap: int, project_ids: Optional[list] = None) -> list[dict]:
    qs = Hospital.objects.filter(name__icontains=query, status='active')
    if project_ids:
        qs = qs.filter(project_hospitals__project_id__in=project_ids).distinct()
    qs = qs.prefetch_related('project_hospitals__project')
    results = []
    for hospital in qs.order_by('id')[:cap]:
        links = list(hospital.project_hospitals.all())
        project = links[0].project if links else None
        results.append({
            'id': str(hospital.id),
            'type': 'hospital',
            'title': hospital.name,
            'description': f"{hospital.city or 'Sin ciudad'}, {hospital.province or 'Sin provincia'}",
            'url': _url('hospital', hospital.id),
            'metadata': {
                'status': hospital.status,
                'city': hospital.city,
                'province': hospital.province,
                'project': project.name if project else None,
                'projectId': str(project.id) if project else None,
            },
            'score': calculate_score(hospital.name, query),
        })
    return results


def search_coordinators(query: str, *, cap: int, project_ids: Optional[list] = None) -> list[dict]:
    qs = User.objects.filter(
        Q(name__icontains=query) | Q(email__icontains=query),
        role='coordinator',
        is_active=True,
    )
    if project_ids:
        qs = qs.filter(project_coordinators__project_id__in=project_ids).distinct()
    qs = qs.prefetch_related('project_coordinators__project', 'project_coordinators__hospital')
    results = []
    for coordinator in qs.order_by('id')[:cap]:
        links = list(coordinator.project_coordinators.all())
        link = links[0] if links else None
        project = link.project if link else None
        hospital = link.hospital if link else None
        results.append({
            'id': str(coordinator.id),
            'type': 'coordinator',
            'title': coordinator.name or 'Sin nombre',
            'description': f"{coordinator.email} - {hospital.name if hospital else 'Sin hospital asignado'}",
            'url': _url('coordinator', coordinator.id),
            'metadata': {
                'email': coordinator.email,
                'isActive': coordinator.is_active,
                'project': project.name if project else None,
                'hospital': hospital.name if hospital else None,
            },
            'score': max(
                calculate_score(coordinator.name or '', query),
                calculate_score(coordinator.email or '', query),
            ),
        })
    return results


def search_alerts(query: str, *, cap: int, project_ids: Optional[list] = None) -> list[dict]:
    qs = Alert.objects.filter(
        Q(title__icontains=query) | Q(message__icontains=query),
        is_resolved=False,
    ).select_related('hospital')
    if project_ids:
        qs = qs.filter(project_id__in=project_ids)
    results = []
    for alert in qs.order_by('-created_at')[:cap]:
        results.append({
            'id': str(alert.id),
            'type': 'alert',
            'title': alert.title,
            'description': _truncate(alert.message),
            'url': _url('alert', alert.id),
            'metadata': {
                'severity': alert.severity,
                'created_at': _iso(alert.created_at),
                'hospital': alert.hospital.name if alert.hospital else None,
            },
            'highlighted': {
                'title': highlight_text(alert.title, query),
                'description': highlight_text(alert.message, query),
            },
            'score': best_score(query, (alert.title, 1.0), (alert.message, 0.7)),
        })
    return results


def search_communications(query: str, *, cap: int, project_ids: Optional[list] = None) -> list[dict]:
    qs = Communication.objects.filter(
        Q(subject__icontains=query) | Q(body__icontains=query),
    ).select_related('hospital')
    if project_ids:
        qs = qs.filter(project_id__in=project_ids)
    results = []
    for comm in qs.order_by('-created_at')[:cap]:
        body = _strip_tags(comm.body)
        results.append({
            'id': str(comm.id),
            'type': 'communication',
            'title': comm.subject,
            'description': _truncate(body),
            'url': _url('communication', comm.id),
            'metadata': {
                'type': comm.type,
                'created_at': _iso(comm.created_at),
                'hospital': comm.hospital.name if comm.hospital else None,
            },
            'highlighted': {
                'title': highlight_text(comm.subject, query),
                'description': highlight_text(body, query),
            },
            'score': best_score(query, (comm.subject, 1.0), (comm.body, 0.5)),
        })
    return results


# kind -> (fetcher, divisor used for the per-source cap)
SOURCES: dict[str, tuple[Callable[..., list[dict]], int]] = {
    'project': (search_projects, 4),
    'hospital': (search_hospitals, 4),
    'coordinator': (search_coordinators, 4),
    'alert': (search_alerts, 6),
    'communication': (search_communications, 6),
}


def global_search(query: str, *, types: Optional[list[str]] = None,
                  projects: Optional[list] = None, limit: Optional[int] = None) -> list[dict]:
    """Fan the query out to every enabled source and return the ranked, capped merge.

    Queries shorter than ``SEARCH_MIN_QUERY_LENGTH`` return ``[]`` without
    touching the database.  Database errors propagate to the caller.
    """
    query = (query or '').strip()
    if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
        return []
    limit = limit or settings.SEARCH_DEFAULT_LIMIT

    results: list[dict] = []
    for kind, (fetch, share) in SOURCES.items():
        if not _enabled(kind, types):
            continue
        found = fetch(query, cap=_cap(limit, share), project_ids=projects or None)
        logger.debug("search source=%s query=%r hits=%d", kind, query, len(found))
        results.extend(found)

    return rank_results(results, limit)


def suggestions(query: str) -> list[str]:
    """Return up to 8 distinct entity names that contain ``query``."""
    query = (query or '').strip()
    if not query:
        return []
    found: list[str] = []
    found.extend(Project.objects.filter(name__icontains=query).values_list('name', flat=True)[:3])
    found.extend(Hospital.objects.filter(name__icontains=query).values_list('name', flat=True)[:3])
    coordinators = User.objects.filter(
        Q(name__icontains=query) | Q(email__icontains=query),
        role='coordinator',
    ).values_list('name', 'email')[:2]
    for name, email in coordinators:
        if name:
            found.append(name)
        if email:
            found.append(email)
    return list(dict.fromkeys(found))[:8]
