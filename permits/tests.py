import datetime
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from core.exceptions import InvalidDateRange, InvalidTransition, StoreError
from documents.models import Document, DraftCategory
from documents.services import upload_document
from notifications.models import Notification
from registry.models import Entity
from .models import ActivityLevel, IntentRegistration, PermitApplication, StatusChange
from .services import (
    record_initial_assessment, save_application_draft, submit_application,
    submit_draft_application, submit_intent, transition_application, transition_intent,
)

User = get_user_model()


class PermitTestBase(TestCase):
    def setUp(self):
        self.applicant = User.objects.create_user(
            username='applicant@example.com', email='applicant@example.com', password='password'
        )
        self.officer = User.objects.create_user(
            username='officer@example.com', email='officer@example.com', password='password',
            user_type=User.UserType.STAFF, staff_unit=User.StaffUnit.REGISTRY,
        )
        self.entity = Entity.objects.create(owner=self.applicant, name='Kumul Mining Ltd', entity_type='company')

    def intent_fields(self, **overrides):
        fields = {
            'entity': self.entity,
            'activity_level': ActivityLevel.LEVEL_2,
            'activity_description': 'Alluvial gold mining',
            'preparatory_work_description': 'Drilling and site survey',
            'commencement_date': datetime.date(2026, 3, 1),
            'completion_date': datetime.date(2026, 9, 1),
        }
        fields.update(overrides)
        return fields

    def application_fields(self, **overrides):
        fields = {'entity': self.entity, 'title': 'Gold lease', 'permit_type': 'mining'}
        fields.update(overrides)
        return fields


class SubmitIntentTest(PermitTestBase):
    def test_date_range_must_be_strictly_increasing(self):
        start = datetime.date(2026, 3, 1)
        cases = [
            (start, start - datetime.timedelta(days=30), False),
            (start, start - datetime.timedelta(days=1), False),
            (start, start, False),
            (start, start + datetime.timedelta(days=1), True),
            (start, start + datetime.timedelta(days=365), True),
        ]
        for commencement, completion, accepted in cases:
            with self.subTest(commencement=commencement, completion=completion):
                before = IntentRegistration.objects.count()
                fields = self.intent_fields(commencement_date=commencement, completion_date=completion)
                if accepted:
                    intent = submit_intent(self.applicant, fields)
                    self.assertEqual(intent.status, IntentRegistration.Status.PENDING)
                    self.assertEqual(IntentRegistration.objects.count(), before + 1)
                else:
                    with self.assertRaises(InvalidDateRange):
                        submit_intent(self.applicant, fields)
                    self.assertEqual(IntentRegistration.objects.count(), before)

    def test_missing_fields_are_reported_per_field(self):
        with self.assertRaises(ValidationError) as ctx:
            submit_intent(self.applicant, self.intent_fields(activity_description='', completion_date=None))
        self.assertIn('activity_description', ctx.exception.message_dict)
        self.assertIn('completion_date', ctx.exception.message_dict)
        self.assertFalse(IntentRegistration.objects.exists())

    def test_entity_must_belong_to_applicant(self):
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password')
        with self.assertRaises(ValidationError):
            submit_intent(other, self.intent_fields())

    def test_store_failure_raises_store_error(self):
        with mock.patch.object(IntentRegistration.objects, 'create', side_effect=DatabaseError("connection lost")):
            with self.assertRaises(StoreError) as ctx:
                submit_intent(self.applicant, self.intent_fields())
        self.assertEqual(str(ctx.exception), "connection lost")

    def test_submission_sends_no_notification(self):
        submit_intent(self.applicant, self.intent_fields())
        self.assertFalse(Notification.objects.exists())


class ApplicationLifecycleTest(PermitTestBase):
    def walk(self, application, *statuses):
        for status in statuses:
            transition_application(application, status, by_user=self.officer)
        return application

    def test_submit_assigns_application_number(self):
        application = submit_application(self.applicant, self.application_fields())
        self.assertEqual(application.status, PermitApplication.Status.SUBMITTED)
        self.assertRegex(application.application_number, r'^APP/\d{4}/0001$')

        second = submit_application(self.applicant, self.application_fields(title='Second lease'))
        self.assertTrue(second.application_number.endswith('/0002'))

    def test_application_number_serial_passes_9999(self):
        year = timezone.localtime().year
        for serial in (9998, 9999, 10000):
            PermitApplication.objects.create(
                user=self.applicant, entity=self.entity, title=f'Lease {serial}', permit_type='mining',
                status=PermitApplication.Status.SUBMITTED, application_number=f'APP/{year}/{serial:04d}',
            )

        application = submit_application(self.applicant, self.application_fields())

        self.assertEqual(application.application_number, f'APP/{year}/10001')

    def test_draft_then_submit(self):
        application = save_application_draft(self.applicant, self.application_fields())
        self.assertIsNone(application.application_number)

        submit_draft_application(application, self.applicant)

        application.refresh_from_db()
        self.assertEqual(application.status, PermitApplication.Status.SUBMITTED)
        self.assertIsNotNone(application.application_number)
        # The applicant is not notified about their own submission
        self.assertFalse(Notification.objects.filter(user=self.applicant).exists())

    def test_permit_number_assigned_only_on_approval(self):
        application = submit_application(self.applicant, self.application_fields())
        self.walk(
            application,
            PermitApplication.Status.UNDER_INITIAL_REVIEW,
            PermitApplication.Status.INITIAL_ASSESSMENT_PASSED,
            PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT,
            PermitApplication.Status.UNDER_TECHNICAL_ASSESSMENT,
        )
        application.refresh_from_db()
        self.assertIsNone(application.permit_number)

        transition_application(application, PermitApplication.Status.APPROVED, by_user=self.officer)

        application.refresh_from_db()
        self.assertRegex(application.permit_number, r'^PER/\d{4}/0001$')
        self.assertIsNotNone(application.approval_date)

    def test_transitions_are_logged_and_notified(self):
        application = submit_application(self.applicant, self.application_fields())
        transition_application(
            application, PermitApplication.Status.UNDER_INITIAL_REVIEW, by_user=self.officer, remarks='Screening'
        )

        change = StatusChange.objects.get(permit_application=application)
        self.assertEqual(change.from_status, PermitApplication.Status.SUBMITTED)
        self.assertEqual(change.to_status, PermitApplication.Status.UNDER_INITIAL_REVIEW)
        self.assertEqual(change.by_user, self.officer)
        self.assertEqual(change.remarks, 'Screening')
        notification = Notification.objects.get(user=self.applicant)
        self.assertEqual(notification.type, Notification.Type.STATUS_UPDATE)

    def test_clarification_requires_action(self):
        application = submit_application(self.applicant, self.application_fields())
        self.walk(
            application,
            PermitApplication.Status.UNDER_INITIAL_REVIEW,
            PermitApplication.Status.REQUIRES_CLARIFICATION,
        )
        self.assertTrue(
            Notification.objects.filter(user=self.applicant, type=Notification.Type.ACTION_REQUIRED).exists()
        )

    def test_invalid_transition_changes_nothing(self):
        application = submit_application(self.applicant, self.application_fields())
        with self.assertRaises(InvalidTransition):
            transition_application(application, PermitApplication.Status.APPROVED, by_user=self.officer)

        application.refresh_from_db()
        self.assertEqual(application.status, PermitApplication.Status.SUBMITTED)
        self.assertFalse(StatusChange.objects.exists())

    def test_record_initial_assessment(self):
        application = submit_application(self.applicant, self.application_fields())
        assessment = record_initial_assessment(
            application, self.officer, 'clarification', feedback='Attach the site plan.'
        )
        self.assertEqual(application.initial_assessments.get(), assessment)


class IntentLifecycleTest(PermitTestBase):
    def test_review_and_approve(self):
        intent = submit_intent(self.applicant, self.intent_fields())
        transition_intent(intent, IntentRegistration.Status.UNDER_REVIEW, by_user=self.officer)
        transition_intent(intent, IntentRegistration.Status.APPROVED, by_user=self.officer)

        intent.refresh_from_db()
        self.assertEqual(intent.status, IntentRegistration.Status.APPROVED)
        self.assertEqual(intent.status_changes.count(), 2)
        self.assertEqual(Notification.objects.filter(user=self.applicant).count(), 2)

    def test_cannot_skip_review(self):
        intent = submit_intent(self.applicant, self.intent_fields())
        with self.assertRaises(InvalidTransition):
            transition_intent(intent, IntentRegistration.Status.APPROVED, by_user=self.officer)


class PermitViewTest(PermitTestBase):
    def test_intent_submission_links_drafts(self):
        self.client.force_login(self.applicant)
        for name in ('plan.pdf', 'survey.pdf'):
            upload_document(
                self.applicant,
                SimpleUploadedFile(name, b'data', content_type='application/pdf'),
                draft_category=DraftCategory.INTENT,
            )

        response = self.client.post(reverse('permits:intent_create'), {
            'entity': self.entity.pk,
            'activity_level': ActivityLevel.LEVEL_2,
            'activity_description': 'Alluvial gold mining',
            'preparatory_work_description': 'Drilling',
            'commencement_date': '2026-03-01',
            'completion_date': '2026-09-01',
        }, follow=True)

        intent = IntentRegistration.objects.get()
        self.assertRedirects(response, reverse('permits:intent_detail', args=[intent.pk]))
        self.assertEqual(intent.documents.count(), 2)
        self.assertFalse(Document.objects.drafts().exists())
        self.assertContains(response, "Documents Linked: 2 document(s) linked.")

    def test_applicant_cannot_transition(self):
        application = submit_application(self.applicant, self.application_fields())
        self.client.force_login(self.applicant)
        response = self.client.post(
            reverse('permits:application_transition', args=[application.pk]),
            {'status': PermitApplication.Status.UNDER_INITIAL_REVIEW},
        )
        self.assertRedirects(response, reverse('dashboard'), fetch_redirect_response=False)
        application.refresh_from_db()
        self.assertEqual(application.status, PermitApplication.Status.SUBMITTED)

    def test_staff_transition(self):
        application = submit_application(self.applicant, self.application_fields())
        self.client.force_login(self.officer)
        self.client.post(
            reverse('permits:application_transition', args=[application.pk]),
            {'status': PermitApplication.Status.UNDER_INITIAL_REVIEW, 'remarks': 'Screening'},
        )
        application.refresh_from_db()
        self.assertEqual(application.status, PermitApplication.Status.UNDER_INITIAL_REVIEW)

    def test_applicant_sees_only_own_applications(self):
        submit_application(self.applicant, self.application_fields())
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password')
        self.client.force_login(other)
        response = self.client.get(reverse('permits:application_list'))
        self.assertEqual(len(response.context['applications']), 0)
