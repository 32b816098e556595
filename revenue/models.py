from django.conf import settings
from django.db import models

from permits.models import IntentRegistration, PermitApplication


class Invoice(models.Model):
    """
    A fee charged to an applicant. Invoices are financial records and are
    never deleted; a mistaken invoice is cancelled instead.
    """
    class Status(models.TextChoices):
        ISSUED = 'issued', 'Issued'
        VOID = 'void', 'Void'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        OVERDUE = 'overdue', 'Overdue'
        CANCELLED = 'cancelled', 'Cancelled'

    class InvoiceType(models.TextChoices):
        PERMIT_FEE = 'permit_fee', 'Permit Fee'
        ANNUAL_FEE = 'annual_fee', 'Annual Fee'
        INTENT_FEE = 'intent_fee', 'Intent Registration Fee'
        INSPECTION_FEE = 'inspection_fee', 'Inspection Fee'

    class VerificationStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        VERIFIED = 'verified', 'Verified'
        REJECTED = 'rejected', 'Rejected'

    invoice_number = models.CharField(max_length=30, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='invoices')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='PGK')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ISSUED)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    invoice_type = models.CharField(max_length=20, choices=InvoiceType.choices, default=InvoiceType.PERMIT_FEE)
    due_date = models.DateField()
    paid_date = models.DateTimeField(null=True, blank=True)

    permit = models.ForeignKey(
        PermitApplication, on_delete=models.PROTECT, null=True, blank=True, related_name='invoices'
    )
    intent_registration = models.ForeignKey(
        IntentRegistration, on_delete=models.PROTECT, null=True, blank=True, related_name='invoices'
    )
    inspection_reference = models.CharField(max_length=50, blank=True)

    # Revenue follow-up
    assigned_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_invoices'
    )
    follow_up_date = models.DateTimeField(null=True, blank=True)
    follow_up_notes = models.TextField(blank=True)

    # Payment verification
    verification_status = models.CharField(
        max_length=10, choices=VerificationStatus.choices, null=True, blank=True
    )
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='verified_invoices'
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    verification_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.invoice_number} ({self.currency} {self.amount})"
