"""
Management command to populate the database with development data.
"""
from datetime import date, timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from portal.models import (
    Alert, Communication, Hospital, Notification, Project, ProjectCoordinator,
    ProjectHospital, RecruitmentPeriod, User,
)


class Command(BaseCommand):
    help = 'Populate database with development data'

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Creando datos de prueba...')

        projects = self.create_projects()
        hospitals = self.create_hospitals()
        links = self.create_project_hospitals(projects, hospitals)
        self.create_recruitment_periods(links)
        admin = self.create_admin()
        coordinators = self.create_coordinators(projects, hospitals)
        alerts = self.create_alerts(projects, hospitals)
        self.create_notifications(coordinators)
        self.create_communications(admin, coordinators, alerts)

        self.stdout.write(self.style.SUCCESS('Datos de prueba creados.'))

    def create_projects(self):
        projects_data = [
            {'name': 'EPIC-Q', 'description': 'Estudio multicéntrico de calidad perioperatoria', 'status': 'active'},
            {'name': 'EPIC-Q Pediátrico', 'description': 'Extensión pediátrica del estudio', 'status': 'active'},
            {'name': 'Registro Piloto', 'description': '', 'status': 'completed'},
        ]
        projects = []
        for data in projects_data:
            project, _ = Project.objects.get_or_create(name=data['name'], defaults=data)
            projects.append(project)
            self.stdout.write(f'Proyecto: {project.name}')
        return projects

    def create_hospitals(self):
        hospitals_data = [
            {'name': 'Hospital General de Buenos Aires', 'city': 'Buenos Aires', 'province': 'Buenos Aires'},
            {'name': 'Hospital Italiano', 'city': 'Buenos Aires', 'province': 'Buenos Aires'},
            {'name': 'Hospital Provincial de Córdoba', 'city': 'Córdoba', 'province': 'Córdoba'},
            {'name': 'Sanatorio Rosario', 'city': 'Rosario', 'province': 'Santa Fe'},
            {'name': 'Hospital Regional Mendoza', 'city': 'Mendoza', 'province': 'Mendoza', 'status': 'inactive'},
        ]
        hospitals = []
        for data in hospitals_data:
            hospital, _ = Hospital.objects.get_or_create(name=data['name'], defaults=data)
            hospitals.append(hospital)
            self.stdout.write(f'Hospital: {hospital.name}')
        return hospitals

    def create_project_hospitals(self, projects, hospitals):
        links = []
        for i, hospital in enumerate(hospitals):
            link, _ = ProjectHospital.objects.get_or_create(
                project=projects[i % 2],
                hospital=hospital,
                defaults={'status': 'active' if hospital.status == 'active' else 'pending', 'progress': 20 * (i + 1) % 100},
            )
            links.append(link)
        return links

    def create_recruitment_periods(self, links):
        start = date.today().replace(day=1)
        for link in links:
            for number in (1, 2):
                period_start = start + timedelta(days=60 * (number - 1))
                RecruitmentPeriod.objects.get_or_create(
                    project_hospital=link,
                    period_number=number,
                    defaults={'start_date': period_start, 'end_date': period_start + timedelta(days=30)},
                )

    def create_admin(self):
        admin, _ = User.objects.get_or_create(
            username='admin',
            defaults={
                'email': 'admin@epicq.org',
                'name': 'Administración EPIC-Q',
                'password': make_password('123456'),
                'role': 'admin',
                'is_staff': True,
            },
        )
        self.stdout.write(f'Administrador: {admin.username}')
        return admin

    def create_coordinators(self, projects, hospitals):
        coordinators_data = [
            {'username': 'mgarcia', 'name': 'María García', 'email': 'maria.garcia@hgba.org', 'hospital': hospitals[0]},
            {'username': 'jperez', 'name': 'Juan Pérez', 'email': 'juan.perez@italiano.org', 'hospital': hospitals[1]},
            {'username': 'lfernandez', 'name': 'Lucía Fernández', 'email': 'lucia@cordoba.gob.ar', 'hospital': hospitals[2]},
            {'username': 'inactivo', 'name': 'Coordinador Inactivo', 'email': 'baja@epicq.org',
             'hospital': hospitals[3], 'is_active': False},
        ]
        coordinators = []
        for i, data in enumerate(coordinators_data):
            user, _ = User.objects.get_or_create(
                username=data['username'],
                defaults={
                    'email': data['email'],
                    'name': data['name'],
                    'password': make_password('123456'),
                    'role': 'coordinator',
                    'hospital': data['hospital'],
                    'is_active': data.get('is_active', True),
                },
            )
            ProjectCoordinator.objects.get_or_create(
                user=user,
                project=projects[i % 2],
                defaults={'hospital': data['hospital'], 'accepted_at': timezone.now()},
            )
            coordinators.append(user)
            self.stdout.write(f'Coordinador: {user.name}')
        return coordinators

    def create_alerts(self, projects, hospitals):
        alerts_data = [
            {'type': 'low_recruitment', 'severity': 'high', 'title': 'Reclutamiento bajo',
             'message': 'El hospital no registra pacientes en los últimos 7 días.'},
            {'type': 'missing_documents', 'severity': 'medium', 'title': 'Documentación pendiente',
             'message': 'Falta la aprobación del comité de ética.'},
            {'type': 'period_ending', 'severity': 'critical', 'title': 'Período de reclutamiento por finalizar',
             'message': 'El período 1 finaliza en 3 días.'},
        ]
        alerts = []
        for i, data in enumerate(alerts_data):
            alert, _ = Alert.objects.get_or_create(
                title=data['title'],
                hospital=hospitals[i],
                defaults=dict(data, project=projects[i % 2], metadata={'seed': True}),
            )
            alerts.append(alert)
        return alerts

    def create_notifications(self, coordinators):
        for user in coordinators:
            for title, message, kind in [
                ('Bienvenido a EPIC-Q', 'Tu cuenta de coordinador está activa.', 'info'),
                ('Nuevo formulario disponible', 'Completa el formulario del hospital.', 'task'),
            ]:
                Notification.objects.get_or_create(user=user, title=title, defaults={'message': message, 'type': kind})

    def create_communications(self, admin, coordinators, alerts):
        now = timezone.now()
        for i, user in enumerate(coordinators):
            alert = alerts[i] if i < len(alerts) else None
            Communication.objects.get_or_create(
                user=user,
                subject='Recordatorio de carga de datos',
                defaults={
                    'sender': admin,
                    'hospital': user.hospital,
                    'alert': alert,
                    'project': alert.project if alert else None,
                    'type': 'reminder',
                    'body': '<p>Por favor <strong>actualice</strong> los casos del período actual.</p>',
                    'sent_at': now - timedelta(hours=i + 1),
                },
            )
