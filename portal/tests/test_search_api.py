"""
Integration tests for the global search endpoints.
"""
from unittest import mock

from django.db import DatabaseError
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import (
    Alert, Communication, Hospital, Project, ProjectCoordinator, ProjectHospital, User,
)


class GlobalSearchAPITests(APITestCase):
    def setUp(self) -> None:
        self.epicq = Project.objects.create(name="EPIC-Q", description="Estudio multicéntrico")
        self.piloto = Project.objects.create(name="Registro Piloto")

        self.general = Hospital.objects.create(name="Hospital General de Buenos Aires", city="CABA", province="Buenos Aires")
        self.italiano = Hospital.objects.create(name="Hospital Italiano", city="CABA", province="Buenos Aires")
        self.closed = Hospital.objects.create(name="Hospital Cerrado", status="inactive")
        ProjectHospital.objects.create(project=self.epicq, hospital=self.general)
        ProjectHospital.objects.create(project=self.piloto, hospital=self.italiano)

        self.admin_user = User.objects.create_user(username="admin", password="P@ssw0rd1", role="admin")
        self.coordinator = User.objects.create_user(
            username="mgarcia", password="P@ssw0rd1", role="coordinator",
            name="María García", email="maria@hgba.org", hospital=self.general,
        )
        ProjectCoordinator.objects.create(user=self.coordinator, project=self.epicq, hospital=self.general)
        self.retired = User.objects.create_user(
            username="baja", password="P@ssw0rd1", role="coordinator",
            name="Hospital Baja", email="baja@epicq.org", is_active=False,
        )

        Alert.objects.create(hospital=self.general, project=self.epicq, severity="high",
                             title="Reclutamiento bajo en Hospital General", message="Sin pacientes en 7 días")
        Alert.objects.create(hospital=self.general, title="Hospital resuelto", is_resolved=True)
        Communication.objects.create(
            user=self.coordinator, sender=self.admin_user, hospital=self.general, project=self.epicq,
            subject="Recordatorio", body="<p>Visite el <b>Hospital General</b></p>",
        )

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def search(self, payload, user=None):
        client = self.authenticate(user or self.admin_user)
        return client.post("/api/search/global", payload, format="json")

    def test_results_are_ranked_and_exclude_inactive_records(self):
        response = self.search({"query": "hospital"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data["results"]
        scores = [r["score"] for r in results]
        self.assertEqual(scores, sorted(scores, reverse=True))
        titles = [r["title"] for r in results]
        self.assertNotIn("Hospital Cerrado", titles)
        self.assertNotIn("Hospital Baja", titles)
        self.assertNotIn("Hospital resuelto", titles)
        self.assertEqual({r["type"] for r in results}, {"hospital", "alert", "communication"})
        self.assertEqual(results[0]["score"], 90)

    def test_result_shape(self):
        results = self.search({"query": "hospital general"}).data["results"]
        hospital = next(r for r in results if r["type"] == "hospital")
        self.assertEqual(hospital["url"], f"/es/admin/hospitals/{self.general.id}")
        self.assertEqual(hospital["description"], "CABA, Buenos Aires")
        self.assertEqual(hospital["metadata"]["project"], "EPIC-Q")
        self.assertEqual(hospital["score"], 90)

        alert = next(r for r in results if r["type"] == "alert")
        self.assertIn("<mark>Hospital</mark>", alert["highlighted"]["title"])

        comm = next(r for r in results if r["type"] == "communication")
        self.assertEqual(comm["description"], "Visite el Hospital General")

    def test_coordinator_matches_on_email(self):
        results = self.search({"query": "maria@", "filters": {"types": ["coordinator"]}}).data["results"]
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["id"], str(self.coordinator.id))
        self.assertEqual(results[0]["metadata"]["hospital"], self.general.name)
        self.assertEqual(results[0]["score"], 90)

    def test_short_query_returns_empty_list(self):
        for query in ("", "a", " a "):
            response = self.search({"query": query})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data["results"], [])

    def test_type_and_project_filters(self):
        results = self.search({"query": "hospital", "filters": {"types": ["hospital"]}}).data["results"]
        self.assertEqual({r["type"] for r in results}, {"hospital"})

        results = self.search({
            "query": "hospital",
            "filters": {"types": ["hospital"], "projects": [str(self.piloto.id)]},
        }).data["results"]
        self.assertEqual([r["title"] for r in results], ["Hospital Italiano"])

    def test_limit_truncates(self):
        results = self.search({"query": "hospital", "limit": 1}).data["results"]
        self.assertEqual(len(results), 1)

    def test_invalid_limit_is_rejected(self):
        response = self.search({"query": "hospital", "limit": 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_admins_may_search(self):
        response = self.search({"query": "hospital"}, user=self.coordinator)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = APIClient().post("/api/search/global", {"query": "hospital"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_database_errors_are_not_leaked(self):
        with mock.patch("portal.services.search.global_search", side_effect=DatabaseError("relation secret_table")):
            response = self.search({"query": "hospital"})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"]["message"], "Error interno del servidor")
        self.assertNotIn(b"secret_table", response.content)


class SuggestionsAPITests(APITestCase):
    def setUp(self) -> None:
        Project.objects.create(name="Hospitales Unidos")
        Hospital.objects.create(name="Hospital Italiano")
        Hospital.objects.create(name="Hospital Alemán")
        self.user = User.objects.create_user(
            username="c1", password="P@ssw0rd1", role="coordinator", name="Ana Hospitalaria", email="ana@hosp.org",
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_suggestions_collect_names(self):
        response = self.client.post("/api/search/suggestions", {"query": "hosp"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        suggestions = response.data["suggestions"]
        self.assertEqual(suggestions[0], "Hospitales Unidos")
        self.assertIn("Hospital Italiano", suggestions)
        self.assertIn("ana@hosp.org", suggestions)
        self.assertEqual(len(suggestions), len(set(suggestions)))
        self.assertLessEqual(len(suggestions), 8)

    def test_empty_query_has_no_suggestions(self):
        response = self.client.post("/api/search/suggestions", {"query": ""}, format="json")
        self.assertEqual(response.data["suggestions"], [])
