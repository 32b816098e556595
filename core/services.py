"""
Dashboard read models: the applicant's recent activity feed and KPI tiles.

Both are read-only and safe to recompute on every page load. Each source
is fetched on its own; a failing source is logged and skipped so the rest
of the dashboard still renders.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Prefetch, Sum

from documents.models import Document
from notifications.models import Notification
from permits.models import InitialAssessment, PermitApplication
from permits.services import ACTIVE_APPLICATION_STATUSES
from revenue.models import Invoice
from revenue.services import OUTSTANDING_PAYMENT_STATUSES

logger = logging.getLogger(__name__)

APPLICATION_FEED_SIZE = 5
INVOICE_FEED_SIZE = 3
NOTIFICATION_FEED_SIZE = 3

APPLICATION_STATUS_TITLES = {
    PermitApplication.Status.DRAFT: 'Draft Application',
    PermitApplication.Status.SUBMITTED: 'Application Submitted',
    PermitApplication.Status.UNDER_INITIAL_REVIEW: 'Under Initial Review',
    PermitApplication.Status.INITIAL_ASSESSMENT_PASSED: 'Initial Assessment Passed',
    PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT: 'Awaiting Technical Assessment',
    PermitApplication.Status.UNDER_TECHNICAL_ASSESSMENT: 'Under Technical Assessment',
    PermitApplication.Status.REQUIRES_CLARIFICATION: 'Clarification Required',
    PermitApplication.Status.APPROVED: 'Application Approved',
    PermitApplication.Status.REJECTED: 'Application Rejected',
}
DEFAULT_APPLICATION_TITLE = 'Application Updated'

APPLICATION_ACTIONS = {
    PermitApplication.Status.DRAFT: 'Continue Draft',
    PermitApplication.Status.REQUIRES_CLARIFICATION: 'Respond to Feedback',
}


@dataclass
class ActivityItem:
    type: str
    record_id: int
    title: str
    description: str
    status: str
    timestamp: object
    actionable: bool = False
    action_text: str = ''


def application_title(status):
    return APPLICATION_STATUS_TITLES.get(status, DEFAULT_APPLICATION_TITLE)


def application_activity(user):
    applications = (
        PermitApplication.objects
        .filter(user=user)
        .prefetch_related(Prefetch(
            'initial_assessments',
            queryset=InitialAssessment.objects.order_by('-created_at'),
            to_attr='latest_assessments',
        ))
        .order_by('-updated_at')[:APPLICATION_FEED_SIZE]
    )
    items = []
    for application in applications:
        description = application.title
        feedback = next((a.feedback_provided for a in application.latest_assessments if a.feedback_provided), '')
        if feedback:
            description = f"{application.title}: {feedback}"
        items.append(ActivityItem(
            type='application',
            record_id=application.pk,
            title=application_title(application.status),
            description=description,
            status=application.status,
            timestamp=application.updated_at,
            actionable=application.status in APPLICATION_ACTIONS,
            action_text=APPLICATION_ACTIONS.get(application.status, ''),
        ))
    return items


def invoice_activity(user):
    items = []
    for invoice in Invoice.objects.filter(user=user).order_by('-created_at')[:INVOICE_FEED_SIZE]:
        if invoice.payment_status == Invoice.PaymentStatus.OVERDUE:
            title = 'Overdue Payment'
        else:
            title = f"Invoice {invoice.get_payment_status_display()}"
        items.append(ActivityItem(
            type='invoice',
            record_id=invoice.pk,
            title=title,
            description=f"{invoice.invoice_number}: {invoice.currency} {invoice.amount:,}",
            status=invoice.payment_status,
            timestamp=invoice.created_at,
            actionable=invoice.payment_status in OUTSTANDING_PAYMENT_STATUSES,
            action_text='View Invoice' if invoice.payment_status in OUTSTANDING_PAYMENT_STATUSES else '',
        ))
    return items


def notification_activity(user):
    return [
        ActivityItem(
            type='notification',
            record_id=notification.pk,
            title=notification.title,
            description=notification.message,
            status='read' if notification.is_read else 'unread',
            timestamp=notification.created_at,
        )
        for notification in Notification.objects.filter(user=user).order_by('-created_at')[:NOTIFICATION_FEED_SIZE]
    ]


def build_activity_feed(user, limit=None):
    """
    Merges the user's recent applications, invoices and notifications into
    one list, newest first, cut to ``limit`` items.
    """
    if limit is None:
        limit = settings.PERMIT_ACTIVITY_FEED_LIMIT

    items = []
    sources = (
        ('applications', application_activity),
        ('invoices', invoice_activity),
        ('notifications', notification_activity),
    )
    for name, source in sources:
        try:
            with transaction.atomic():
                items.extend(source(user))
        except Exception:
            logger.exception("Could not load %s for the activity feed of user %s", name, user.pk)

    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items[:limit]


def format_amount(amount):
    """Formats a kina total the way the dashboard shows it, e.g. K1,500."""
    amount = Decimal(amount).quantize(Decimal('0.01'))
    if amount == amount.to_integral_value():
        return f"K{int(amount):,}"
    return f"K{amount:,}"


def _active_applications(user):
    return PermitApplication.objects.filter(user=user, status__in=ACTIVE_APPLICATION_STATUSES).count()


def _approved_permits(user):
    return PermitApplication.objects.filter(user=user, status=PermitApplication.Status.APPROVED).count()


def _pending_payments(user):
    total = Invoice.objects.filter(
        user=user, payment_status__in=OUTSTANDING_PAYMENT_STATUSES
    ).aggregate(total=Sum('amount'))['total']
    return total or Decimal('0')


def _documents(user):
    return Document.objects.owned_by(user).linked().count()


def get_dashboard_stats(user):
    stats = {}
    kpis = (
        ('active_applications', _active_applications),
        ('approved_permits', _approved_permits),
        ('pending_payments_amount', _pending_payments),
        ('documents', _documents),
    )
    for name, compute in kpis:
        try:
            with transaction.atomic():
                stats[name] = compute(user)
        except Exception:
            logger.exception("Could not compute dashboard figure %s for user %s", name, user.pk)
            stats[name] = 0
    stats['pending_payments'] = format_amount(stats['pending_payments_amount'])
    return stats
