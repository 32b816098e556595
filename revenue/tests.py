import datetime
from decimal import Decimal

from django.contrib.admin.sites import site
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import RequestFactory, TestCase
from django.urls import reverse

from notifications.models import Notification
from .models import Invoice
from .services import is_overdue, schedule_follow_up, update_payment_status, verify_payment

User = get_user_model()


class InvoiceTestBase(TestCase):
    def setUp(self):
        self.applicant = User.objects.create_user(username='a@example.com', email='a@example.com', password='password')
        self.officer = User.objects.create_user(
            username='rev@example.com', email='rev@example.com', password='password',
            user_type=User.UserType.STAFF, staff_unit=User.StaffUnit.REVENUE,
        )
        self.invoice = Invoice.objects.create(
            invoice_number='INV-0001',
            user=self.applicant,
            amount=Decimal('2500.00'),
            due_date=datetime.date(2026, 5, 1),
        )


class PaymentStatusTest(InvoiceTestBase):
    def test_defaults(self):
        self.assertEqual(self.invoice.currency, 'PGK')
        self.assertEqual(self.invoice.payment_status, Invoice.PaymentStatus.PENDING)

    def test_paid_stamps_paid_date(self):
        update_payment_status(self.invoice, Invoice.PaymentStatus.PAID)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.payment_status, Invoice.PaymentStatus.PAID)
        self.assertIsNotNone(self.invoice.paid_date)
        self.assertIsNone(self.invoice.follow_up_date)
        self.assertTrue(Notification.objects.filter(user=self.applicant, type=Notification.Type.PAYMENT).exists())

    def test_notes_stamp_follow_up_date(self):
        update_payment_status(self.invoice, Invoice.PaymentStatus.OVERDUE, follow_up_notes='Called the finance office')
        self.invoice.refresh_from_db()
        self.assertIsNone(self.invoice.paid_date)
        self.assertEqual(self.invoice.follow_up_notes, 'Called the finance office')
        self.assertIsNotNone(self.invoice.follow_up_date)

    def test_unknown_status_rejected(self):
        with self.assertRaises(ValidationError):
            update_payment_status(self.invoice, 'refunded')

    def test_is_overdue(self):
        self.assertTrue(is_overdue(self.invoice, today=datetime.date(2026, 5, 2)))
        self.assertFalse(is_overdue(self.invoice, today=datetime.date(2026, 5, 1)))
        self.invoice.payment_status = Invoice.PaymentStatus.PAID
        self.assertFalse(is_overdue(self.invoice, today=datetime.date(2026, 6, 1)))


class FollowUpAndVerificationTest(InvoiceTestBase):
    def test_schedule_follow_up_assigns_officer(self):
        follow_up = datetime.datetime(2026, 5, 10, 9, 0, tzinfo=datetime.timezone.utc)
        schedule_follow_up(self.invoice, follow_up, 'Second reminder', officer=self.officer)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.follow_up_date, follow_up)
        self.assertEqual(self.invoice.assigned_officer, self.officer)

    def test_verify_payment(self):
        verify_payment(self.invoice, self.officer, Invoice.VerificationStatus.VERIFIED, notes='Receipt matches')
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.verification_status, Invoice.VerificationStatus.VERIFIED)
        self.assertEqual(self.invoice.verified_by, self.officer)
        self.assertIsNotNone(self.invoice.verified_at)


class InvoiceViewTest(InvoiceTestBase):
    def test_applicant_cannot_change_payment_status(self):
        self.client.force_login(self.applicant)
        self.client.post(
            reverse('revenue:invoice_payment_status', args=[self.invoice.pk]),
            {'payment_status': Invoice.PaymentStatus.PAID},
        )
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.payment_status, Invoice.PaymentStatus.PENDING)

    def test_officer_marks_paid(self):
        self.client.force_login(self.officer)
        response = self.client.post(
            reverse('revenue:invoice_payment_status', args=[self.invoice.pk]),
            {'payment_status': Invoice.PaymentStatus.PAID},
        )
        self.assertRedirects(
            response, reverse('revenue:invoice_detail', args=[self.invoice.pk]), fetch_redirect_response=False
        )
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.payment_status, Invoice.PaymentStatus.PAID)

    def test_invoices_cannot_be_deleted_in_admin(self):
        request = RequestFactory().get('/')
        request.user = User.objects.create_superuser(username='root@example.com', email='root@example.com', password='password')
        self.assertFalse(site._registry[Invoice].has_delete_permission(request, self.invoice))
