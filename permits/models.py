from django.conf import settings
from django.db import models

from registry.models import Entity


class ActivityLevel(models.TextChoices):
    LEVEL_1 = 'level_1', 'Level 1'
    LEVEL_2 = 'level_2', 'Level 2'
    LEVEL_3 = 'level_3', 'Level 3'


class IntentRegistration(models.Model):
    """
    Mandatory filing that declares intended preparatory work before a
    Level 2 or Level 3 permit application is lodged.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        UNDER_REVIEW = 'under_review', 'Under Review'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='intent_registrations')
    entity = models.ForeignKey(Entity, on_delete=models.PROTECT, related_name='intent_registrations')
    activity_level = models.CharField(max_length=20, choices=ActivityLevel.choices)
    activity_description = models.TextField()
    preparatory_work_description = models.TextField()
    commencement_date = models.DateField()
    completion_date = models.DateField()
    # Written only by permits.services
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(completion_date__gt=models.F('commencement_date')),
                name='intent_completion_after_commencement',
            ),
        ]

    def __str__(self):
        return f"Intent #{self.pk} - {self.entity}"


class PermitApplication(models.Model):
    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        SUBMITTED = 'submitted', 'Submitted'
        UNDER_INITIAL_REVIEW = 'under_initial_review', 'Under Initial Review'
        INITIAL_ASSESSMENT_PASSED = 'initial_assessment_passed', 'Initial Assessment Passed'
        PENDING_TECHNICAL_ASSESSMENT = 'pending_technical_assessment', 'Pending Technical Assessment'
        UNDER_TECHNICAL_ASSESSMENT = 'under_technical_assessment', 'Under Technical Assessment'
        REQUIRES_CLARIFICATION = 'requires_clarification', 'Requires Clarification'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='permit_applications')
    entity = models.ForeignKey(Entity, on_delete=models.PROTECT, related_name='permit_applications')
    intent_registration = models.ForeignKey(
        IntentRegistration, on_delete=models.SET_NULL, null=True, blank=True, related_name='permit_applications'
    )
    title = models.CharField(max_length=255)
    permit_type = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    activity_level = models.CharField(max_length=20, choices=ActivityLevel.choices, null=True, blank=True)

    application_number = models.CharField(max_length=30, null=True, blank=True, unique=True)
    # Assigned only when the application is approved
    permit_number = models.CharField(max_length=30, null=True, blank=True, unique=True)
    approval_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=40, choices=Status.choices, default=Status.DRAFT)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(permit_number__isnull=True) | models.Q(status='approved'),
                name='permit_number_only_when_approved',
            ),
        ]

    def __str__(self):
        return f"{self.application_number or 'Draft'} - {self.title}"


class InitialAssessment(models.Model):
    """Registry screening of a submitted application; its feedback is shown to the applicant."""
    class Outcome(models.TextChoices):
        PASSED = 'passed', 'Passed'
        CLARIFICATION = 'clarification', 'Clarification Required'
        FAILED = 'failed', 'Failed'

    application = models.ForeignKey(PermitApplication, on_delete=models.CASCADE, related_name='initial_assessments')
    assessed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    assessment_status = models.CharField(max_length=20, default='completed')
    assessment_outcome = models.CharField(max_length=20, choices=Outcome.choices, null=True, blank=True)
    assessment_notes = models.TextField(blank=True)
    feedback_provided = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Assessment of {self.application}"


class StatusChange(models.Model):
    """Audit trail entry written with every lifecycle transition."""
    permit_application = models.ForeignKey(
        PermitApplication, on_delete=models.CASCADE, null=True, blank=True, related_name='status_changes'
    )
    intent_registration = models.ForeignKey(
        IntentRegistration, on_delete=models.CASCADE, null=True, blank=True, related_name='status_changes'
    )
    from_status = models.CharField(max_length=40)
    to_status = models.CharField(max_length=40)
    by_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    remarks = models.TextField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['timestamp']

    def __str__(self):
        target = self.permit_application or self.intent_registration
        return f"{target}: {self.from_status} -> {self.to_status}"
