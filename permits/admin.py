from django.contrib import admin
from .models import InitialAssessment, IntentRegistration, PermitApplication, StatusChange


class StatusChangeInline(admin.TabularInline):
    model = StatusChange
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'by_user', 'remarks', 'timestamp')
    can_delete = False


@admin.register(IntentRegistration)
class IntentRegistrationAdmin(admin.ModelAdmin):
    list_display = ('id', 'entity', 'activity_level', 'status', 'commencement_date', 'completion_date')
    list_filter = ('status', 'activity_level')
    search_fields = ('entity__name', 'activity_description')
    # Status changes go through the lifecycle services
    readonly_fields = ('status',)
    inlines = [StatusChangeInline]


@admin.register(PermitApplication)
class PermitApplicationAdmin(admin.ModelAdmin):
    list_display = ('application_number', 'title', 'entity', 'status', 'permit_number', 'updated_at')
    list_filter = ('status', 'activity_level', 'permit_type')
    search_fields = ('application_number', 'permit_number', 'title', 'entity__name')
    readonly_fields = ('status', 'application_number', 'permit_number', 'approval_date')
    inlines = [StatusChangeInline]


@admin.register(InitialAssessment)
class InitialAssessmentAdmin(admin.ModelAdmin):
    list_display = ('application', 'assessment_outcome', 'assessed_by', 'created_at')
    list_filter = ('assessment_outcome',)
