"""
Lifecycle of intent registrations and permit applications.

These functions are the only writers of the ``status`` fields. Every
operation takes the acting user explicitly.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from core.exceptions import InvalidDateRange, InvalidTransition, StoreError
from notifications.models import Notification
from notifications.services import notify_user
from .models import IntentRegistration, PermitApplication, StatusChange
from .utils import next_reference_number

logger = logging.getLogger(__name__)

INTENT_REQUIRED_FIELDS = (
    'entity',
    'activity_level',
    'activity_description',
    'preparatory_work_description',
    'commencement_date',
    'completion_date',
)

APPLICATION_REQUIRED_FIELDS = ('entity', 'title', 'permit_type')

APPLICATION_TRANSITIONS = {
    PermitApplication.Status.DRAFT: {PermitApplication.Status.SUBMITTED},
    PermitApplication.Status.SUBMITTED: {PermitApplication.Status.UNDER_INITIAL_REVIEW},
    PermitApplication.Status.UNDER_INITIAL_REVIEW: {
        PermitApplication.Status.INITIAL_ASSESSMENT_PASSED,
        PermitApplication.Status.REQUIRES_CLARIFICATION,
        PermitApplication.Status.REJECTED,
    },
    PermitApplication.Status.INITIAL_ASSESSMENT_PASSED: {PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT},
    PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT: {PermitApplication.Status.UNDER_TECHNICAL_ASSESSMENT},
    PermitApplication.Status.UNDER_TECHNICAL_ASSESSMENT: {
        PermitApplication.Status.APPROVED,
        PermitApplication.Status.REJECTED,
        PermitApplication.Status.REQUIRES_CLARIFICATION,
    },
    PermitApplication.Status.REQUIRES_CLARIFICATION: {PermitApplication.Status.SUBMITTED},
}

INTENT_TRANSITIONS = {
    IntentRegistration.Status.PENDING: {IntentRegistration.Status.UNDER_REVIEW},
    IntentRegistration.Status.UNDER_REVIEW: {
        IntentRegistration.Status.APPROVED,
        IntentRegistration.Status.REJECTED,
    },
}

# Statuses that count as "active" on the applicant dashboard
ACTIVE_APPLICATION_STATUSES = [
    PermitApplication.Status.SUBMITTED,
    PermitApplication.Status.UNDER_INITIAL_REVIEW,
    PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT,
    PermitApplication.Status.UNDER_TECHNICAL_ASSESSMENT,
    PermitApplication.Status.REQUIRES_CLARIFICATION,
]


def validate_date_range(commencement_date, completion_date):
    if commencement_date >= completion_date:
        raise InvalidDateRange()


def _require_fields(fields, required):
    missing = {name: "This field is required." for name in required if not fields.get(name)}
    if missing:
        raise ValidationError(missing)


def _check_entity_owner(user, entity):
    if entity.owner_id != user.pk:
        raise ValidationError({'entity': "You can only file on behalf of your own entities."})


def submit_intent(user, fields):
    """
    Registers an intent to carry out preparatory work.

    Raises ValidationError for missing fields, InvalidDateRange when the
    completion date is not strictly after commencement, and StoreError when
    the insert fails. Nothing is written unless every check passes.
    """
    _require_fields(fields, INTENT_REQUIRED_FIELDS)
    _check_entity_owner(user, fields['entity'])
    validate_date_range(fields['commencement_date'], fields['completion_date'])

    try:
        with transaction.atomic():
            intent = IntentRegistration.objects.create(
                user=user,
                entity=fields['entity'],
                activity_level=fields['activity_level'],
                activity_description=fields['activity_description'],
                preparatory_work_description=fields['preparatory_work_description'],
                commencement_date=fields['commencement_date'],
                completion_date=fields['completion_date'],
                status=IntentRegistration.Status.PENDING,
            )
    except DatabaseError as exc:
        raise StoreError(str(exc), operation='submit_intent') from exc

    logger.info("Intent registration %s submitted by user %s", intent.pk, user.pk)
    return intent


def _application_values(fields):
    return {
        'entity': fields['entity'],
        'title': fields['title'],
        'permit_type': fields['permit_type'],
        'description': fields.get('description') or '',
        'activity_level': fields.get('activity_level') or None,
        'intent_registration': fields.get('intent_registration'),
    }


def save_application_draft(user, fields):
    """Saves an application the applicant is still preparing."""
    _require_fields(fields, APPLICATION_REQUIRED_FIELDS)
    _check_entity_owner(user, fields['entity'])

    try:
        with transaction.atomic():
            application = PermitApplication.objects.create(
                user=user,
                status=PermitApplication.Status.DRAFT,
                **_application_values(fields),
            )
    except DatabaseError as exc:
        raise StoreError(str(exc), operation='save_application_draft') from exc
    return application


def submit_application(user, fields):
    """Lodges a new permit application straight into the submitted state."""
    _require_fields(fields, APPLICATION_REQUIRED_FIELDS)
    _check_entity_owner(user, fields['entity'])

    try:
        with transaction.atomic():
            application = PermitApplication.objects.create(
                user=user,
                status=PermitApplication.Status.SUBMITTED,
                application_number=next_reference_number(
                    PermitApplication.objects.all(), 'application_number', 'APP'
                ),
                **_application_values(fields),
            )
    except DatabaseError as exc:
        raise StoreError(str(exc), operation='submit_application') from exc

    logger.info("Permit application %s submitted by user %s", application.pk, user.pk)
    return application


def submit_draft_application(application, user):
    """Moves a draft to submitted, assigning its application number."""
    if application.user_id != user.pk:
        raise ValidationError("You can only submit your own applications.")
    return transition_application(application, PermitApplication.Status.SUBMITTED, by_user=user)


def _record_transition(record, new_status, by_user, remarks, **log_target):
    old_status = record.status
    record.status = new_status
    StatusChange.objects.create(
        from_status=old_status,
        to_status=new_status,
        by_user=by_user,
        remarks=remarks or None,
        **log_target,
    )
    return old_status


def transition_application(application, new_status, by_user, remarks=''):
    """
    Moves an application along its review workflow.

    Approval assigns the permit number and approval date. The applicant is
    notified of every change except their own submission.
    """
    allowed = APPLICATION_TRANSITIONS.get(application.status, set())
    if new_status not in allowed:
        raise InvalidTransition(application.status, new_status)

    try:
        with transaction.atomic():
            old_status = _record_transition(
                application, new_status, by_user, remarks, permit_application=application
            )
            update_fields = ['status', 'updated_at']

            if new_status == PermitApplication.Status.SUBMITTED and not application.application_number:
                application.application_number = next_reference_number(
                    PermitApplication.objects.all(), 'application_number', 'APP'
                )
                update_fields.append('application_number')

            if new_status == PermitApplication.Status.APPROVED:
                application.permit_number = next_reference_number(
                    PermitApplication.objects.all(), 'permit_number', 'PER'
                )
                application.approval_date = timezone.now()
                update_fields += ['permit_number', 'approval_date']

            application.save(update_fields=update_fields)

            if by_user is None or by_user.pk != application.user_id:
                notify_user(
                    application.user,
                    title=f"Application {application.get_status_display()}",
                    message=f"{application.title} moved from {PermitApplication.Status(old_status).label} "
                            f"to {application.get_status_display()}.",
                    type=(
                        Notification.Type.ACTION_REQUIRED
                        if new_status == PermitApplication.Status.REQUIRES_CLARIFICATION
                        else Notification.Type.STATUS_UPDATE
                    ),
                )
    except DatabaseError as exc:
        application.refresh_from_db()
        raise StoreError(str(exc), operation='transition_application') from exc

    logger.info(
        "Permit application %s moved %s -> %s by user %s",
        application.pk, old_status, new_status, getattr(by_user, 'pk', None),
    )
    return application


def transition_intent(intent, new_status, by_user, remarks=''):
    allowed = INTENT_TRANSITIONS.get(intent.status, set())
    if new_status not in allowed:
        raise InvalidTransition(intent.status, new_status)

    try:
        with transaction.atomic():
            old_status = _record_transition(
                intent, new_status, by_user, remarks, intent_registration=intent
            )
            intent.save(update_fields=['status', 'updated_at'])
            notify_user(
                intent.user,
                title=f"Intent Registration {intent.get_status_display()}",
                message=f"Your intent registration for {intent.entity} is now {intent.get_status_display().lower()}.",
                type=Notification.Type.STATUS_UPDATE,
            )
    except DatabaseError as exc:
        intent.refresh_from_db()
        raise StoreError(str(exc), operation='transition_intent') from exc

    logger.info(
        "Intent registration %s moved %s -> %s by user %s",
        intent.pk, old_status, new_status, getattr(by_user, 'pk', None),
    )
    return intent


def record_initial_assessment(application, assessed_by, outcome, feedback='', notes=''):
    """Stores the registry's screening result for an application under initial review."""
    return application.initial_assessments.create(
        assessed_by=assessed_by,
        assessment_outcome=outcome,
        feedback_provided=feedback,
        assessment_notes=notes,
    )
