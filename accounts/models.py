from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    class UserType(models.TextChoices):
        PUBLIC = 'public', 'Public'
        STAFF = 'staff', 'Staff'
        ADMIN = 'admin', 'Admin'
        SUPER_ADMIN = 'super_admin', 'Super Admin'

    class StaffUnit(models.TextChoices):
        REGISTRY = 'registry', 'Registry'
        COMPLIANCE = 'compliance', 'Compliance'
        REVENUE = 'revenue', 'Revenue'
        TECHNICAL = 'technical', 'Technical Assessment'
        EXECUTIVE = 'executive', 'Executive'

    class StaffPosition(models.TextChoices):
        OFFICER = 'officer', 'Officer'
        SENIOR_OFFICER = 'senior_officer', 'Senior Officer'
        MANAGER = 'manager', 'Manager'
        DIRECTOR = 'director', 'Director'

    user_type = models.CharField(max_length=20, choices=UserType.choices, default=UserType.PUBLIC)
    staff_unit = models.CharField(max_length=20, choices=StaffUnit.choices, null=True, blank=True)
    staff_position = models.CharField(max_length=20, choices=StaffPosition.choices, null=True, blank=True)
    phone = models.CharField(max_length=30, null=True, blank=True)
    organization = models.CharField(max_length=200, null=True, blank=True)

    # Written only by accounts.services.set_suspension
    is_suspended = models.BooleanField(default=False)
    suspended_at = models.DateTimeField(null=True, blank=True)
    suspended_by = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='suspensions_made'
    )
    suspension_reason = models.TextField(null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        is_suspended=False,
                        suspended_at__isnull=True,
                        suspended_by__isnull=True,
                        suspension_reason__isnull=True,
                    )
                    | models.Q(
                        is_suspended=True,
                        suspended_at__isnull=False,
                        suspension_reason__isnull=False,
                    )
                ),
                name='user_suspension_fields_consistent',
            ),
        ]

    def __str__(self):
        return self.username

    @property
    def is_admin(self):
        return self.user_type in (self.UserType.ADMIN, self.UserType.SUPER_ADMIN)

    @property
    def is_portal_staff(self):
        return self.user_type != self.UserType.PUBLIC

    @property
    def is_super_admin(self):
        return self.user_type == self.UserType.SUPER_ADMIN

    @property
    def display_name(self):
        return self.get_full_name() or self.email or self.username
