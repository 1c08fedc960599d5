"""
Database models for the EPIC-Q portal.

These models capture the study concepts the portal reads from: projects,
participating hospitals, coordinators and the three feeds that make up a
coordinator's inbox (system notifications, communications and alerts).
Field names follow the JSON the front-end consumes so that serialising
them stays a thin mapping.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class Project(models.Model):
    """A multi-hospital clinical study."""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
    ]
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Hospital(models.Model):
    """A hospital that may take part in one or more projects."""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('pending', 'Pending'),
    ]
    name = models.CharField(max_length=255, db_index=True)
    city = models.CharField(max_length=120, blank=True)
    province = models.CharField(max_length=120, blank=True)
    # Only active hospitals are searchable
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class ProjectHospital(models.Model):
    """One hospital's participation in one project."""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='project_hospitals')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='project_hospitals')
    status = models.CharField(max_length=20, default='pending')
    progress = models.PositiveSmallIntegerField(default=0)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('project', 'hospital')]

    def __str__(self) -> str:
        return f"{self.hospital} in {self.project}"


class RecruitmentPeriod(models.Model):
    """A bounded date range during which a hospital enrols study cases."""
    project_hospital = models.ForeignKey(ProjectHospital, on_delete=models.CASCADE, related_name='recruitment_periods')
    period_number = models.PositiveSmallIntegerField(default=1)
    start_date = models.DateField()
    end_date = models.DateField()

    class Meta:
        ordering = ['project_hospital', 'period_number']

    def __str__(self) -> str:
        return f"{self.project_hospital} #{self.period_number} ({self.start_date:%F} ~ {self.end_date:%F})"


class User(AbstractUser):
    """Portal user with a role and an optional hospital binding.

    Administrators run the study; coordinators are hospital-side users
    invited per project.  ``hospital`` scopes which alerts reach a
    coordinator's inbox.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('coordinator', 'Coordinator'),
    ]
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='coordinator', db_index=True)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class ProjectCoordinator(models.Model):
    """Links a coordinator to the project and hospital they were invited for."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='project_coordinators')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='project_coordinators')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='project_coordinators'
    )
    is_active = models.BooleanField(default=True)
    invited_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = [('user', 'project')]

    def __str__(self) -> str:
        return f"{self.user} for {self.project}"


class Notification(models.Model):
    """An in-app system notification addressed to one user."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=32, default='info')
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_read_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.title} -> {self.user_id}"


class Alert(models.Model):
    """A study alert raised for a hospital or a project."""
    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    hospital = models.ForeignKey(Hospital, null=True, blank=True, on_delete=models.CASCADE, related_name='alerts')
    project = models.ForeignKey(Project, null=True, blank=True, on_delete=models.CASCADE, related_name='alerts')
    type = models.CharField(max_length=64, default='general')
    severity = models.CharField(max_length=16, choices=SEVERITY_CHOICES, default='medium')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    is_resolved = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self) -> str:
        return f"[{self.severity}] {self.title}"


class Communication(models.Model):
    """A message logged in one recipient's communication history."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='communications')
    sender = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='sent_communications'
    )
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='communications'
    )
    project = models.ForeignKey(
        Project, null=True, blank=True, on_delete=models.SET_NULL, related_name='communications'
    )
    alert = models.ForeignKey(Alert, null=True, blank=True, on_delete=models.SET_NULL, related_name='communications')
    type = models.CharField(max_length=32, default='manual')
    subject = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'read_at'], name='comm_user_read_idx'),
            models.Index(fields=['user', 'created_at'], name='comm_user_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.subject} -> {self.user_id}"
