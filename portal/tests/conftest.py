import asyncio
from datetime import timedelta

import httpx
import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from portal.client import ApiClient, ClientConfig
from portal.models import Alert, Communication, Hospital, Notification, Project, User


def backdate(obj, minutes):
    """Move ``created_at`` into the past (it is auto_now_add)."""
    type(obj).objects.filter(pk=obj.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name="Hospital Italiano", city="CABA", province="Buenos Aires")


@pytest.fixture
def project(db):
    return Project.objects.create(name="EPIC-Q")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username="admin", password="P@ssw0rd1", role="admin", name="Admin")


@pytest.fixture
def coordinator(hospital):
    return User.objects.create_user(
        username="c1", password="P@ssw0rd1", role="coordinator", name="Juan Pérez", hospital=hospital,
    )


@pytest.fixture
def other_coordinator(db):
    return User.objects.create_user(username="c2", password="P@ssw0rd1", role="coordinator", name="Otra")


@pytest.fixture
def api(coordinator):
    client = APIClient()
    client.force_authenticate(user=coordinator)
    return client


@pytest.fixture
def inbox(coordinator, admin_user, hospital, project):
    """One read and one unread notification, one unread communication, one open alert."""
    unread = Notification.objects.create(user=coordinator, title="Nuevo formulario", message="Completar")
    read = Notification.objects.create(user=coordinator, title="Bienvenido", message="Hola", is_read=True)
    comm = Communication.objects.create(
        user=coordinator, sender=admin_user, hospital=hospital, project=project,
        subject="Recordatorio", body="Cargar casos", type="reminder",
    )
    alert = Alert.objects.create(hospital=hospital, project=project, severity="critical",
                                 title="Reclutamiento bajo", message="Sin pacientes")
    backdate(read, 40)
    backdate(unread, 30)
    backdate(comm, 20)
    backdate(alert, 10)
    return {"unread": unread, "read": read, "communication": comm, "alert": alert}


@pytest.fixture
def broadcasts(monkeypatch):
    """Record user ids passed to the notifications broadcast."""
    sent = []
    monkeypatch.setattr("portal.services.notifications.broadcast_notifications_update", sent.append)
    return sent


@pytest.fixture
def make_api():
    """Build ``ApiClient`` instances over ``httpx.MockTransport``; all are closed at teardown."""
    clients = []

    def factory(handler, **config):
        config.setdefault("base_url", "http://portal.test")
        client = ApiClient(ClientConfig(**config), transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        asyncio.run(client.close())
