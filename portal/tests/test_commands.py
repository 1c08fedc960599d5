from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from portal.models import Alert, Communication, Hospital, Notification, User
from portal.services.search import global_search

pytestmark = pytest.mark.django_db


def test_populate_data_is_idempotent():
    call_command('populate_data', stdout=StringIO())
    call_command('populate_data', stdout=StringIO())
    assert Hospital.objects.count() == 5
    assert User.objects.filter(role='coordinator').count() == 4
    assert Notification.objects.count() == 8
    assert Communication.objects.count() == 4
    assert Alert.objects.count() == 3


def test_seeded_search_skips_inactive_records():
    call_command('populate_data', stdout=StringIO())
    results = global_search('hospital', limit=20)
    titles = [r['title'] for r in results]
    assert 'Hospital Regional Mendoza' not in titles
    assert 'Coordinador Inactivo' not in titles
    scores = [r['score'] for r in results]
    assert scores == sorted(scores, reverse=True)


def test_broadcast_command(monkeypatch, coordinator, other_coordinator):
    sent = []
    monkeypatch.setattr(
        'portal.management.commands.broadcast_notifications_update.broadcast_notifications_update',
        lambda uid: sent.append(uid) or True,
    )
    out = StringIO()
    call_command('broadcast_notifications_update', stdout=out)
    assert sorted(sent) == sorted([coordinator.id, other_coordinator.id])
    assert '2/2' in out.getvalue()

    sent.clear()
    call_command('broadcast_notifications_update', '--user', str(coordinator.id), stdout=StringIO())
    assert sent == [coordinator.id]

    with pytest.raises(CommandError):
        call_command('broadcast_notifications_update', '--user', '999999', stdout=StringIO())


def test_ensure_test_users_issues_tokens():
    out = StringIO()
    call_command('ensure_test_users', stdout=out)
    assert User.objects.get(username='admin').role == 'admin'
    assert 'token=' in out.getvalue()
