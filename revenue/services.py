import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from core.exceptions import StoreError
from notifications.models import Notification
from notifications.services import notify_user
from .models import Invoice

logger = logging.getLogger(__name__)

# Payment statuses counted as money still owed
OUTSTANDING_PAYMENT_STATUSES = [Invoice.PaymentStatus.PENDING, Invoice.PaymentStatus.OVERDUE]


def _save(invoice, update_fields, operation):
    try:
        with transaction.atomic():
            invoice.save(update_fields=update_fields + ['updated_at'])
    except DatabaseError as exc:
        invoice.refresh_from_db()
        raise StoreError(str(exc), operation=operation) from exc


def update_payment_status(invoice, payment_status, follow_up_notes=''):
    """
    Sets the payment status. Marking an invoice paid stamps ``paid_date``;
    follow-up notes stamp ``follow_up_date``.
    """
    if payment_status not in Invoice.PaymentStatus.values:
        raise ValidationError({'payment_status': f"Unknown payment status '{payment_status}'."})

    now = timezone.now()
    invoice.payment_status = payment_status
    update_fields = ['payment_status']
    if payment_status == Invoice.PaymentStatus.PAID:
        invoice.paid_date = now
        update_fields.append('paid_date')
    if follow_up_notes:
        invoice.follow_up_notes = follow_up_notes
        invoice.follow_up_date = now
        update_fields += ['follow_up_notes', 'follow_up_date']

    _save(invoice, update_fields, 'update_payment_status')
    notify_user(
        invoice.user,
        title=f"Invoice {invoice.invoice_number} {invoice.get_payment_status_display().lower()}",
        message=f"The payment status of invoice {invoice.invoice_number} is now {invoice.get_payment_status_display()}.",
        type=Notification.Type.PAYMENT,
    )
    logger.info("Invoice %s payment status set to %s", invoice.invoice_number, payment_status)
    return invoice


def schedule_follow_up(invoice, follow_up_date, notes, officer=None):
    invoice.follow_up_date = follow_up_date
    invoice.follow_up_notes = notes
    update_fields = ['follow_up_date', 'follow_up_notes']
    if officer is not None:
        invoice.assigned_officer = officer
        update_fields.append('assigned_officer')

    _save(invoice, update_fields, 'schedule_follow_up')
    logger.info("Follow-up on invoice %s scheduled for %s", invoice.invoice_number, follow_up_date)
    return invoice


def verify_payment(invoice, by_user, verification_status, notes=''):
    """Records the revenue unit's check of a payment against its receipt."""
    if verification_status not in Invoice.VerificationStatus.values:
        raise ValidationError({'verification_status': f"Unknown verification status '{verification_status}'."})

    invoice.verification_status = verification_status
    invoice.verified_by = by_user
    invoice.verified_at = timezone.now()
    invoice.verification_notes = notes or ''
    _save(
        invoice,
        ['verification_status', 'verified_by', 'verified_at', 'verification_notes'],
        'verify_payment',
    )
    logger.info("Invoice %s verification set to %s by user %s", invoice.invoice_number, verification_status, by_user.pk)
    return invoice


def is_overdue(invoice, today=None):
    today = today or timezone.localdate()
    return invoice.payment_status == Invoice.PaymentStatus.PENDING and invoice.due_date < today
