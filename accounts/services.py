import logging

from django.contrib.auth.forms import PasswordResetForm
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Q, Value
from django.db.models.functions import Concat
from django.utils import timezone

from core.exceptions import ProtectedAccount, ReasonRequired, StoreError
from .models import User

logger = logging.getLogger(__name__)

SUSPENSION_FIELDS = ['is_suspended', 'suspended_at', 'suspended_by', 'suspension_reason']


def set_suspension(user, suspend, acting_user, reason=''):
    """
    Suspends or reactivates a user account.

    Super admins can never be suspended (or reactivated through this path).
    Suspending requires a non-blank reason. Both checks run before any write.
    The flag and its three audit fields are saved together in one UPDATE,
    so the row is never left with is_suspended set and no timestamp.
    """
    if user.user_type == User.UserType.SUPER_ADMIN:
        raise ProtectedAccount()

    reason = (reason or '').strip()
    if suspend and not reason:
        raise ReasonRequired()

    if suspend:
        values = {
            'is_suspended': True,
            'suspended_at': timezone.now(),
            'suspended_by': acting_user,
            'suspension_reason': reason,
        }
    else:
        values = {
            'is_suspended': False,
            'suspended_at': None,
            'suspended_by': None,
            'suspension_reason': None,
        }

    # Last write wins: two admins acting on the same account both succeed.
    try:
        with transaction.atomic():
            for field, value in values.items():
                setattr(user, field, value)
            user.save(update_fields=SUSPENSION_FIELDS)
    except DatabaseError as exc:
        user.refresh_from_db(fields=SUSPENSION_FIELDS)
        raise StoreError(str(exc), operation='set_suspension') from exc

    logger.info(
        "User %s %s by %s",
        user.pk,
        'suspended' if suspend else 'reactivated',
        getattr(acting_user, 'pk', None),
    )
    return user


def create_staff_user(email, password, first_name, last_name, staff_unit, staff_position, phone=''):
    """Creates an active staff account that signs in with its email address."""
    missing = {
        name: "This field is required."
        for name, value in (
            ('email', email),
            ('password', password),
            ('staff_unit', staff_unit),
            ('staff_position', staff_position),
        )
        if not value
    }
    if missing:
        raise ValidationError(missing)

    email = User.objects.normalize_email(email)
    if User.objects.filter(username__iexact=email).exists():
        raise ValidationError({'email': "A user with that email already exists."})

    try:
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=first_name or '',
            last_name=last_name or '',
            user_type=User.UserType.STAFF,
            staff_unit=staff_unit,
            staff_position=staff_position,
            phone=phone or None,
        )
    except DatabaseError as exc:
        raise StoreError(str(exc), operation='create_staff_user') from exc

    logger.info("Staff user %s created", user.pk)
    return user


def send_password_reset(user, request):
    """Emails the user a one-time password reset link."""
    if not user.email:
        raise ValidationError("This user has no email address on file.")

    form = PasswordResetForm(data={'email': user.email})
    if not form.is_valid():
        raise ValidationError(form.errors)
    form.save(request=request, use_https=request.is_secure())
    logger.info("Password reset email sent to user %s", user.pk)


def filter_users(queryset, search='', user_type='all', status='all'):
    """Applies the user management search box and the type/status filters."""
    if search:
        queryset = queryset.annotate(
            full_name=Concat('first_name', Value(' '), 'last_name')
        ).filter(
            Q(email__icontains=search) | Q(full_name__icontains=search)
        )
    if user_type and user_type != 'all':
        queryset = queryset.filter(user_type=user_type)
    if status == 'active':
        queryset = queryset.filter(is_suspended=False)
    elif status == 'suspended':
        queryset = queryset.filter(is_suspended=True)
    return queryset
