"""
Django admin registrations for the portal models.

Superusers can inspect seed data and fix records by hand under
``/admin/`` during development.
"""

from django.contrib import admin

from .models import (
    Alert,
    Communication,
    Hospital,
    Notification,
    Project,
    ProjectCoordinator,
    ProjectHospital,
    RecruitmentPeriod,
    User,
)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('name',)


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'city', 'province', 'status')
    list_filter = ('status', 'province')
    search_fields = ('name', 'city')


@admin.register(ProjectHospital)
class ProjectHospitalAdmin(admin.ModelAdmin):
    list_display = ('project', 'hospital', 'status', 'progress')
    list_filter = ('project', 'status')


@admin.register(RecruitmentPeriod)
class RecruitmentPeriodAdmin(admin.ModelAdmin):
    list_display = ('project_hospital', 'period_number', 'start_date', 'end_date')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'email', 'role', 'hospital', 'is_active')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'name', 'email')


@admin.register(ProjectCoordinator)
class ProjectCoordinatorAdmin(admin.ModelAdmin):
    list_display = ('user', 'project', 'hospital', 'is_active', 'accepted_at')
    list_filter = ('project', 'is_active')
    search_fields = ('user__name', 'user__email')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'title', 'type', 'is_read', 'created_at')
    list_filter = ('is_read', 'type')
    search_fields = ('title', 'user__username')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'severity', 'hospital', 'project', 'is_resolved', 'created_at')
    list_filter = ('severity', 'is_resolved')
    search_fields = ('title', 'message')


@admin.register(Communication)
class CommunicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'subject', 'type', 'sent_at', 'read_at')
    list_filter = ('type',)
    search_fields = ('subject', 'user__username')
