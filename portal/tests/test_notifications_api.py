import pytest
from rest_framework.test import APIClient

from portal.models import Alert, Communication, Notification

from .conftest import backdate

pytestmark = pytest.mark.django_db


def test_feed_merges_sources_newest_first(api, inbox):
    r = api.get('/api/notifications')
    assert r.status_code == 200
    assert r.data['success'] is True
    sources = [(n['source'], n['id']) for n in r.data['notifications']]
    assert sources == [
        ('alert', str(inbox['alert'].id)),
        ('communication', str(inbox['communication'].id)),
        ('system', str(inbox['unread'].id)),
        ('system', str(inbox['read'].id)),
    ]
    alert = r.data['notifications'][0]
    assert alert['read'] is True
    assert alert['data']['severity'] == 'critical'
    comm = r.data['notifications'][1]
    assert comm['data']['sender_name'] == 'Admin'
    assert r.data['unreadCount'] == 2
    assert r.data['grouped'] is False


def test_unread_count_ignores_limit(api, inbox):
    r = api.get('/api/notifications', {'limit': 1})
    assert len(r.data['notifications']) == 1
    assert r.data['unreadCount'] == 2
    assert r.data['total'] >= 3


def test_unread_only(api, inbox):
    r = api.get('/api/notifications', {'unreadOnly': 'true'})
    ids = {(n['source'], n['id']) for n in r.data['notifications']}
    assert ('system', str(inbox['read'].id)) not in ids
    assert ('system', str(inbox['unread'].id)) in ids


def test_alerts_only_for_own_hospital(api, inbox, other_coordinator):
    Alert.objects.create(title="Otro hospital", severity="high")
    r = api.get('/api/notifications')
    assert [n['title'] for n in r.data['notifications'] if n['source'] == 'alert'] == ['Reclutamiento bajo']

    client = APIClient()
    client.force_authenticate(user=other_coordinator)
    r = client.get('/api/notifications')
    assert r.data['notifications'] == []
    assert r.data['unreadCount'] == 0


def test_grouping_collapses_identical_titles(api, coordinator, inbox):
    for minutes in (5, 6):
        n = Notification.objects.create(user=coordinator, title="  nuevo   FORMULARIO ", message=f"copia {minutes}")
        backdate(n, minutes)
    r = api.get('/api/notifications', {'group': 'true'})
    assert r.data['grouped'] is True
    groups = r.data['notifications']
    assert groups[0]['source'] == 'alert'
    assert groups[0]['priority'] == 100

    forms = [g for g in groups if g['source'] == 'system' and g['count'] == 3]
    assert len(forms) == 1
    form = forms[0]
    assert form['unreadCount'] == 3
    assert form['sampleMessage'] == 'copia 5'
    assert form['priority'] == 40
    assert len(form['items']) == 3

    comm = next(g for g in groups if g['source'] == 'communication')
    assert comm['priority'] == 60
    assert comm['data']['hospital_name'] == 'Hospital Italiano'


def test_patch_marks_notification_and_broadcasts(api, coordinator, inbox, broadcasts):
    r = api.patch('/api/notifications', {'notificationId': str(inbox['unread'].id), 'type': 'notification'}, format='json')
    assert r.status_code == 200
    assert r.data['success'] is True
    inbox['unread'].refresh_from_db()
    assert inbox['unread'].is_read is True
    assert broadcasts == [coordinator.id]


def test_patch_marks_communication(api, coordinator, inbox, broadcasts):
    comm = inbox['communication']
    r = api.patch('/api/notifications', {'notificationId': comm.id, 'type': 'communication'}, format='json')
    assert r.status_code == 200
    comm.refresh_from_db()
    assert comm.read_at is not None
    assert Notification.objects.filter(user=coordinator, is_read=False).count() == 1
    assert broadcasts == [coordinator.id]


def test_patch_alert_is_a_no_op(api, inbox, broadcasts):
    r = api.patch('/api/notifications', {'notificationId': str(inbox['alert'].id), 'type': 'alert'}, format='json')
    assert r.status_code == 200
    inbox['alert'].refresh_from_db()
    assert inbox['alert'].is_resolved is False
    assert broadcasts == []


@pytest.mark.parametrize('body,expected', [
    ({}, 400),
    ({'notificationId': '1'}, 400),
    ({'type': 'notification'}, 400),
    ({'notificationId': '1', 'type': 'email'}, 400),
    ({'notificationId': '999999', 'type': 'notification'}, 404),
    ({'notificationId': 'abc', 'type': 'communication'}, 404),
])
def test_patch_rejects_bad_requests(api, inbox, broadcasts, body, expected):
    r = api.patch('/api/notifications', body, format='json')
    assert r.status_code == expected
    assert r.data['ok'] is False
    assert broadcasts == []


def test_patch_cannot_touch_other_users_items(inbox, other_coordinator, broadcasts):
    client = APIClient()
    client.force_authenticate(user=other_coordinator)
    r = client.patch('/api/notifications', {'notificationId': str(inbox['unread'].id), 'type': 'notification'}, format='json')
    assert r.status_code == 404
    inbox['unread'].refresh_from_db()
    assert inbox['unread'].is_read is False


def test_mark_all_as_read(api, coordinator, inbox, broadcasts):
    Notification.objects.create(user=coordinator, title="Otra", message="")
    r = api.post('/api/notifications', {'action': 'markAllAsRead'}, format='json')
    assert r.status_code == 200
    assert r.data['updated'] == 2
    assert not Notification.objects.filter(user=coordinator, is_read=False).exists()
    # communications keep their own read state
    assert Communication.objects.get(pk=inbox['communication'].pk).read_at is None
    assert broadcasts == [coordinator.id]


def test_unknown_action(api, inbox, broadcasts):
    r = api.post('/api/notifications', {'action': 'deleteAll'}, format='json')
    assert r.status_code == 400
    assert broadcasts == []


def test_requires_authentication(inbox):
    r = APIClient().get('/api/notifications')
    assert r.status_code == 401
