from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from core.exceptions import ProtectedAccount, ReasonRequired, StoreError
from .services import create_staff_user, set_suspension

User = get_user_model()


def make_user(email, **extra):
    return User.objects.create_user(username=email, email=email, password='password', **extra)


def suspension_state(user):
    user.refresh_from_db()
    return (user.is_suspended, user.suspended_at, user.suspended_by_id, user.suspension_reason)


class SuspensionServiceTest(TestCase):
    def setUp(self):
        self.admin = make_user('admin@example.com', user_type=User.UserType.ADMIN)
        self.super_admin = make_user('root@example.com', user_type=User.UserType.SUPER_ADMIN)
        self.applicant = make_user('applicant@example.com')

    def test_super_admin_cannot_be_suspended(self):
        before = suspension_state(self.super_admin)
        for reason in ('Policy breach', '', 'x'):
            with self.subTest(reason=reason):
                with self.assertRaises(ProtectedAccount):
                    set_suspension(self.super_admin, True, acting_user=self.admin, reason=reason)
                self.assertEqual(suspension_state(self.super_admin), before)

    def test_super_admin_cannot_be_reactivated_through_workflow(self):
        with self.assertRaises(ProtectedAccount):
            set_suspension(self.super_admin, False, acting_user=self.admin)

    def test_blank_reason_is_rejected(self):
        for reason in ('', '   ', None):
            with self.subTest(reason=reason):
                with self.assertRaises(ReasonRequired):
                    set_suspension(self.applicant, True, acting_user=self.admin, reason=reason)
                self.assertEqual(suspension_state(self.applicant), (False, None, None, None))

    def test_suspend_sets_all_audit_fields(self):
        set_suspension(self.applicant, True, acting_user=self.admin, reason='  Fraudulent documents  ')

        is_suspended, suspended_at, suspended_by_id, reason = suspension_state(self.applicant)
        self.assertTrue(is_suspended)
        self.assertIsNotNone(suspended_at)
        self.assertEqual(suspended_by_id, self.admin.pk)
        self.assertEqual(reason, 'Fraudulent documents')

    def test_reactivation_clears_audit_fields(self):
        set_suspension(self.applicant, True, acting_user=self.admin, reason='Fraudulent documents')
        set_suspension(self.applicant, False, acting_user=self.admin)
        self.assertEqual(suspension_state(self.applicant), (False, None, None, None))

    def test_store_failure_keeps_previous_state(self):
        with mock.patch.object(User, 'save', side_effect=DatabaseError("database is locked")):
            with self.assertRaises(StoreError) as ctx:
                set_suspension(self.applicant, True, acting_user=self.admin, reason='Fraudulent documents')

        self.assertEqual(str(ctx.exception), "database is locked")
        self.assertFalse(self.applicant.is_suspended)
        self.assertEqual(suspension_state(self.applicant), (False, None, None, None))


class StaffUserTest(TestCase):
    def test_create_staff_user(self):
        user = create_staff_user(
            email='officer@example.com', password='s3cret-pass', first_name='Mary', last_name='Kila',
            staff_unit=User.StaffUnit.COMPLIANCE, staff_position=User.StaffPosition.OFFICER,
        )
        self.assertEqual(user.user_type, User.UserType.STAFF)
        self.assertEqual(user.username, 'officer@example.com')
        self.assertTrue(user.check_password('s3cret-pass'))
        self.assertTrue(user.is_portal_staff)
        self.assertFalse(user.is_admin)

    def test_missing_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            create_staff_user(
                email='', password='', first_name='', last_name='', staff_unit='', staff_position=''
            )
        self.assertIn('email', ctx.exception.message_dict)
        self.assertIn('staff_unit', ctx.exception.message_dict)

    def test_duplicate_email(self):
        make_user('officer@example.com')
        with self.assertRaises(ValidationError):
            create_staff_user(
                email='officer@example.com', password='s3cret-pass', first_name='', last_name='',
                staff_unit=User.StaffUnit.REGISTRY, staff_position=User.StaffPosition.OFFICER,
            )


class AccountViewTest(TestCase):
    def setUp(self):
        self.admin = make_user('admin@example.com', user_type=User.UserType.ADMIN)
        self.staff = make_user('staff@example.com', user_type=User.UserType.STAFF)
        self.applicant = make_user('applicant@example.com')

    def test_suspended_user_cannot_log_in(self):
        set_suspension(self.applicant, True, acting_user=self.admin, reason='Fraudulent documents')
        response = self.client.post(reverse('login'), {'username': 'applicant@example.com', 'password': 'password'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('suspended', response.context['form'].errors['__all__'][0])
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_active_user_can_log_in(self):
        response = self.client.post(reverse('login'), {'username': 'applicant@example.com', 'password': 'password'})
        self.assertRedirects(response, reverse('dashboard'), fetch_redirect_response=False)

    def test_management_views_rbac(self):
        protected_urls = [reverse('user_list'), reverse('staff_user_create')]
        for url in protected_urls:
            for user in (self.staff, self.applicant):
                with self.subTest(url=url, user=user.email):
                    self.client.force_login(user)
                    response = self.client.get(url)
                    self.assertRedirects(response, reverse('dashboard'), fetch_redirect_response=False)

            self.client.force_login(self.admin)
            self.assertEqual(self.client.get(url).status_code, 200)

    def test_user_list_filters(self):
        set_suspension(self.applicant, True, acting_user=self.admin, reason='Fraudulent documents')
        self.client.force_login(self.admin)

        response = self.client.get(reverse('user_list'), {'status': 'suspended'})
        self.assertEqual(list(response.context['users']), [self.applicant])

        response = self.client.get(reverse('user_list'), {'q': 'staff@'})
        self.assertEqual(list(response.context['users']), [self.staff])

    def test_suspend_view_requires_reason(self):
        self.client.force_login(self.admin)
        self.client.post(reverse('user_suspension', args=[self.applicant.pk]), {'reason': ''})
        self.applicant.refresh_from_db()
        self.assertFalse(self.applicant.is_suspended)

        self.client.post(reverse('user_suspension', args=[self.applicant.pk]), {'reason': 'Fraudulent documents'})
        self.applicant.refresh_from_db()
        self.assertTrue(self.applicant.is_suspended)
        self.assertEqual(self.applicant.suspended_by, self.admin)

    def test_reset_password_sends_email(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse('user_reset_password', args=[self.staff.pk]))
        self.assertRedirects(response, reverse('user_list'), fetch_redirect_response=False)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['staff@example.com'])
