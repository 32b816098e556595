import datetime
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from notifications.models import Notification
from permits.models import InitialAssessment, PermitApplication
from registry.models import Entity
from revenue.models import Invoice
from .services import application_title, build_activity_feed, format_amount, get_dashboard_stats

User = get_user_model()


def broken_query(user):
    # A query that fails inside the surrounding transaction, as a failed statement does on PostgreSQL
    with transaction.atomic(savepoint=False):
        raise DatabaseError("relation does not exist")


class DashboardTestBase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='a@example.com', email='a@example.com', password='password')
        self.entity = Entity.objects.create(owner=self.user, name='Kumul Mining', entity_type='company')
        self.base_time = timezone.now() - datetime.timedelta(days=1)

    def at(self, minutes):
        return self.base_time + datetime.timedelta(minutes=minutes)

    def make_application(self, title, minutes, status=PermitApplication.Status.SUBMITTED):
        application = PermitApplication.objects.create(
            user=self.user, entity=self.entity, title=title, permit_type='mining', status=status
        )
        PermitApplication.objects.filter(pk=application.pk).update(updated_at=self.at(minutes))
        return application

    def make_invoice(self, number, minutes, amount='100.00', payment_status=Invoice.PaymentStatus.PENDING):
        invoice = Invoice.objects.create(
            invoice_number=number, user=self.user, amount=Decimal(amount),
            payment_status=payment_status, due_date=datetime.date(2026, 12, 31),
        )
        Invoice.objects.filter(pk=invoice.pk).update(created_at=self.at(minutes))
        return invoice

    def make_notification(self, title, minutes):
        notification = Notification.objects.create(user=self.user, title=title, message='...')
        Notification.objects.filter(pk=notification.pk).update(created_at=self.at(minutes))
        return notification


class ActivityFeedTest(DashboardTestBase):
    def setUp(self):
        super().setUp()
        self.make_application('App t1', 1)
        self.make_invoice('INV-t2', 2)
        self.make_notification('Note t3', 3)
        self.make_application('App t4', 4)
        self.make_notification('Note t5', 5)
        self.make_invoice('INV-t6', 6)
        self.make_notification('Note t7', 7)

    def test_returns_most_recent_items_across_sources(self):
        feed = build_activity_feed(self.user, 6)

        self.assertEqual(len(feed), 6)
        self.assertEqual([item.timestamp for item in feed], [self.at(m) for m in (7, 6, 5, 4, 3, 2)])
        self.assertEqual(
            [item.type for item in feed],
            ['notification', 'invoice', 'notification', 'application', 'notification', 'invoice'],
        )

    def test_failing_source_does_not_hide_the_others(self):
        with mock.patch('core.services.invoice_activity', side_effect=DatabaseError("invoices unavailable")):
            feed = build_activity_feed(self.user, 6)

        self.assertEqual([item.timestamp for item in feed], [self.at(m) for m in (7, 5, 4, 3, 1)])
        self.assertNotIn('invoice', {item.type for item in feed})

    def test_failed_source_does_not_break_later_queries(self):
        with transaction.atomic(), mock.patch('core.services.application_activity', side_effect=broken_query):
            feed = build_activity_feed(self.user, 6)

        self.assertEqual([item.timestamp for item in feed], [self.at(m) for m in (7, 6, 5, 3, 2)])

    def test_default_limit_comes_from_settings(self):
        with self.settings(PERMIT_ACTIVITY_FEED_LIMIT=2):
            self.assertEqual(len(build_activity_feed(self.user)), 2)

    def test_feed_does_not_change_anything(self):
        build_activity_feed(self.user, 6)
        self.assertEqual(Notification.objects.filter(is_read=True).count(), 0)


class ActivityItemTest(DashboardTestBase):
    def test_application_titles_and_actions(self):
        self.make_application('Draft lease', 1, status=PermitApplication.Status.DRAFT)
        clarification = self.make_application(
            'Quarry permit', 2, status=PermitApplication.Status.REQUIRES_CLARIFICATION
        )
        InitialAssessment.objects.create(
            application=clarification, assessment_outcome='clarification', feedback_provided='Attach the site plan.'
        )

        feed = build_activity_feed(self.user, 6)

        self.assertEqual(feed[0].title, 'Clarification Required')
        self.assertEqual(feed[0].action_text, 'Respond to Feedback')
        self.assertIn('Attach the site plan.', feed[0].description)
        self.assertEqual(feed[1].title, 'Draft Application')
        self.assertEqual(feed[1].action_text, 'Continue Draft')

    def test_unknown_status_gets_default_title(self):
        self.assertEqual(application_title('archived'), 'Application Updated')

    def test_invoice_titles(self):
        self.make_invoice('INV-1', 1, payment_status=Invoice.PaymentStatus.OVERDUE)
        self.make_invoice('INV-2', 2, payment_status=Invoice.PaymentStatus.PAID)

        feed = build_activity_feed(self.user, 6)

        self.assertEqual(feed[0].title, 'Invoice Paid')
        self.assertFalse(feed[0].actionable)
        self.assertEqual(feed[1].title, 'Overdue Payment')
        self.assertEqual(feed[1].action_text, 'View Invoice')


class DashboardStatsTest(DashboardTestBase):
    def test_stats(self):
        self.make_application('Submitted', 1)
        self.make_application('Clarify', 2, status=PermitApplication.Status.REQUIRES_CLARIFICATION)
        self.make_application('Draft', 3, status=PermitApplication.Status.DRAFT)
        self.make_invoice('INV-1', 1, amount='1000.00')
        self.make_invoice('INV-2', 2, amount='500.50', payment_status=Invoice.PaymentStatus.OVERDUE)
        self.make_invoice('INV-3', 3, amount='2000.00', payment_status=Invoice.PaymentStatus.PAID)

        stats = get_dashboard_stats(self.user)

        self.assertEqual(stats['active_applications'], 2)
        self.assertEqual(stats['approved_permits'], 0)
        self.assertEqual(stats['pending_payments'], 'K1,500.50')
        self.assertEqual(stats['documents'], 0)

    def test_failing_figure_falls_back_to_zero(self):
        self.make_application('Submitted', 1)
        with mock.patch('core.services._pending_payments', side_effect=DatabaseError("invoices unavailable")):
            stats = get_dashboard_stats(self.user)
        self.assertEqual(stats['pending_payments'], 'K0')
        self.assertEqual(stats['active_applications'], 1)

    def test_failed_figure_does_not_break_later_queries(self):
        self.make_invoice('INV-1', 1, amount='750.00')
        with transaction.atomic(), mock.patch('core.services._active_applications', side_effect=broken_query):
            stats = get_dashboard_stats(self.user)

        self.assertEqual(stats['active_applications'], 0)
        self.assertEqual(stats['pending_payments'], 'K750')

    def test_format_amount(self):
        self.assertEqual(format_amount(Decimal('0')), 'K0')
        self.assertEqual(format_amount(Decimal('1500.00')), 'K1,500')
        self.assertEqual(format_amount(Decimal('1234567.5')), 'K1,234,567.50')


class DashboardViewTest(DashboardTestBase):
    def test_requires_login(self):
        response = self.client.get(reverse('dashboard'))
        self.assertEqual(response.status_code, 302)

    def test_renders_feed_and_stats(self):
        self.make_notification('Welcome', 1)
        self.client.force_login(self.user)
        response = self.client.get(reverse('dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context['activity_feed']), 1)
        self.assertContains(response, 'Welcome')

    def test_landing_redirects_signed_in_users(self):
        self.client.force_login(self.user)
        self.assertRedirects(self.client.get(reverse('landing')), reverse('dashboard'))
