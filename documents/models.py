from django.conf import settings
from django.db import models

from permits.models import IntentRegistration, PermitApplication


class DocumentCategory(models.TextChoices):
    ENVIRONMENTAL_ASSESSMENT = 'environmental_assessment', 'Environmental Assessment'
    MONITORING = 'monitoring', 'Monitoring'
    COMPLIANCE_REPORTS = 'compliance_reports', 'Compliance Reports'
    INSPECTION_REPORTS = 'inspection_reports', 'Inspection Reports'
    NOTICES = 'notices', 'Notices'
    SAFETY = 'safety', 'Safety'


class DraftCategory(models.TextChoices):
    INTENT = 'intent_draft', 'Intent Registration'
    APPLICATION = 'application_draft', 'Permit Application'


class DocumentQuerySet(models.QuerySet):
    def drafts(self):
        return self.filter(state=Document.State.DRAFT)

    def linked(self):
        return self.filter(state=Document.State.LINKED)

    def owned_by(self, user):
        return self.filter(user=user)


class Document(models.Model):
    """
    A stored file and its metadata.

    A document is either a DRAFT (uploaded before its parent record exists,
    tagged with a draft category) or LINKED to exactly one intent
    registration or permit application. Several records may point at the
    same storage key only transiently, while a draft is being linked.
    """
    class State(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        LINKED = 'linked', 'Linked'

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='documents')
    filename = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500, help_text="Key of the blob in the object store")
    file_size = models.PositiveBigIntegerField(default=0)
    mime_type = models.CharField(max_length=150, blank=True)
    document_type = models.CharField(max_length=50, blank=True)

    state = models.CharField(max_length=10, choices=State.choices)
    draft_category = models.CharField(max_length=30, choices=DraftCategory.choices, null=True, blank=True)
    permit = models.ForeignKey(
        PermitApplication, on_delete=models.CASCADE, null=True, blank=True, related_name='documents'
    )
    intent_registration = models.ForeignKey(
        IntentRegistration, on_delete=models.CASCADE, null=True, blank=True, related_name='documents'
    )

    uploaded_at = models.DateTimeField(auto_now_add=True)

    objects = DocumentQuerySet.as_manager()

    class Meta:
        ordering = ['-uploaded_at']
        indexes = [
            models.Index(fields=['user', 'state', 'draft_category'], name='documents_d_user_id_0c3a5e_idx'),
            models.Index(fields=['file_path'], name='documents_d_file_pa_7d1f2b_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        state='draft',
                        draft_category__isnull=False,
                        permit__isnull=True,
                        intent_registration__isnull=True,
                    )
                    | models.Q(state='linked', permit__isnull=False, intent_registration__isnull=True)
                    | models.Q(state='linked', permit__isnull=True, intent_registration__isnull=False)
                ),
                name='document_draft_or_linked_to_one_parent',
            ),
        ]

    def __str__(self):
        return self.filename

    @property
    def is_draft(self):
        return self.state == self.State.DRAFT

    @property
    def parent(self):
        return self.permit or self.intent_registration

    @property
    def category_name(self):
        if self.document_type in DocumentCategory.values:
            return DocumentCategory(self.document_type).label
        return 'General Document'
