import datetime
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.files.storage import InMemoryStorage, default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from core.exceptions import StoreError
from permits.models import ActivityLevel, IntentRegistration, PermitApplication
from registry.models import Entity
from .models import Document, DraftCategory
from .services import (
    delete_document, format_file_size, link_drafts, list_draft_documents, upload_document
)

User = get_user_model()


def make_file(name='report.pdf', content=b'%PDF-1.4 test'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


class DocumentTestBase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='applicant@example.com', email='applicant@example.com', password='password')
        self.entity = Entity.objects.create(owner=self.user, name='Kumul Mining Ltd', entity_type='company')
        self.intent = IntentRegistration.objects.create(
            user=self.user,
            entity=self.entity,
            activity_level=ActivityLevel.LEVEL_2,
            activity_description='Alluvial mining',
            preparatory_work_description='Site survey',
            commencement_date=datetime.date(2026, 1, 1),
            completion_date=datetime.date(2026, 6, 1),
        )


class LinkDraftsTest(DocumentTestBase):
    def test_all_drafts_are_linked_with_their_storage_keys(self):
        drafts = [
            upload_document(self.user, make_file(f'doc{i}.pdf'), draft_category=DraftCategory.INTENT)
            for i in range(3)
        ]
        draft_keys = sorted(d.file_path for d in drafts)

        result = link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(result.linked_count, 3)
        self.assertEqual(result.failures, [])
        linked_keys = sorted(self.intent.documents.values_list('file_path', flat=True))
        self.assertEqual(linked_keys, draft_keys)
        self.assertTrue(all(d.state == Document.State.LINKED for d in self.intent.documents.all()))

    def test_no_drafts_remain_after_linking(self):
        for i in range(2):
            upload_document(self.user, make_file(f'doc{i}.pdf'), draft_category=DraftCategory.INTENT)

        link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(list_draft_documents(self.user, DraftCategory.INTENT).count(), 0)

    def test_only_drafts_of_the_requested_category_are_linked(self):
        upload_document(self.user, make_file('intent.pdf'), draft_category=DraftCategory.INTENT)
        upload_document(self.user, make_file('app.pdf'), draft_category=DraftCategory.APPLICATION)

        result = link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(result.linked_count, 1)
        self.assertEqual(list_draft_documents(self.user, DraftCategory.APPLICATION).count(), 1)

    def test_blobs_are_untouched_by_linking(self):
        draft = upload_document(self.user, make_file(), draft_category=DraftCategory.INTENT)
        link_drafts(self.user, DraftCategory.INTENT, self.intent)
        self.assertTrue(default_storage.exists(draft.file_path))

    def test_failed_create_keeps_the_draft(self):
        upload_document(self.user, make_file(), draft_category=DraftCategory.INTENT)

        with mock.patch.object(Document.objects, 'create', side_effect=DatabaseError("insert rejected")):
            result = link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(result.linked_count, 0)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.failures[0].step, 'create_link')
        self.assertEqual(list_draft_documents(self.user, DraftCategory.INTENT).count(), 1)

    def test_failed_draft_cleanup_still_counts_as_linked(self):
        upload_document(self.user, make_file(), draft_category=DraftCategory.INTENT)

        with mock.patch.object(Document, 'delete', side_effect=DatabaseError("delete rejected")):
            result = link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(result.linked_count, 1)
        self.assertEqual(result.failures[0].step, 'delete_draft')
        # The leftover draft and the linked record share one blob
        self.assertEqual(Document.objects.count(), 2)
        self.assertEqual(Document.objects.values('file_path').distinct().count(), 1)

    def test_leftover_draft_is_not_linked_again(self):
        upload_document(self.user, make_file(), draft_category=DraftCategory.INTENT)
        with mock.patch.object(Document, 'delete', side_effect=DatabaseError("delete rejected")):
            link_drafts(self.user, DraftCategory.INTENT, self.intent)

        self.assertEqual(list_draft_documents(self.user, DraftCategory.INTENT).count(), 0)

        second_intent = IntentRegistration.objects.create(
            user=self.user,
            entity=self.entity,
            activity_level=ActivityLevel.LEVEL_3,
            activity_description='Quarrying',
            preparatory_work_description='Access road',
            commencement_date=datetime.date(2026, 7, 1),
            completion_date=datetime.date(2026, 12, 1),
        )
        result = link_drafts(self.user, DraftCategory.INTENT, second_intent)

        self.assertEqual(result.linked_count, 0)
        self.assertEqual(second_intent.documents.count(), 0)
        self.assertEqual(self.intent.documents.count(), 1)

    def test_cannot_link_to_another_users_record(self):
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password')
        upload_document(other, make_file(), draft_category=DraftCategory.INTENT)
        with self.assertRaises(ValidationError):
            link_drafts(other, DraftCategory.INTENT, self.intent)


class UploadDocumentTest(DocumentTestBase):
    def test_upload_to_parent_is_linked(self):
        document = upload_document(self.user, make_file(), parent=self.intent, document_type='safety')
        self.assertEqual(document.state, Document.State.LINKED)
        self.assertEqual(document.intent_registration, self.intent)
        self.assertTrue(document.file_path.startswith(f'{self.user.pk}/documents/'))
        self.assertTrue(document.file_path.endswith('.pdf'))
        self.assertEqual(document.category_name, 'Safety')

    def test_failed_record_insert_removes_the_blob(self):
        with mock.patch.object(Document.objects, 'create', side_effect=DatabaseError("insert rejected")), \
                mock.patch.object(InMemoryStorage, 'delete') as blob_delete:
            with self.assertRaises(StoreError):
                upload_document(self.user, make_file(), draft_category=DraftCategory.INTENT)

        blob_delete.assert_called_once()
        self.assertEqual(Document.objects.count(), 0)

    def test_requires_parent_or_draft_category(self):
        with self.assertRaises(ValueError):
            upload_document(self.user, make_file())


class DeleteDocumentTest(DocumentTestBase):
    def test_blob_failure_leaves_record_intact(self):
        document = upload_document(self.user, make_file(), parent=self.intent)

        with mock.patch.object(InMemoryStorage, 'delete', side_effect=OSError("storage offline")), \
                mock.patch('documents.services.delete_document_record') as delete_record:
            with self.assertRaises(StoreError):
                delete_document(document)

        delete_record.assert_not_called()
        self.assertTrue(Document.objects.filter(pk=document.pk).exists())

    def test_delete_removes_blob_and_record(self):
        document = upload_document(self.user, make_file(), parent=self.intent)
        key = document.file_path

        delete_document(document)

        self.assertFalse(Document.objects.filter(file_path=key).exists())
        self.assertFalse(default_storage.exists(key))

    def test_shared_key_keeps_the_blob(self):
        document = upload_document(self.user, make_file(), parent=self.intent)
        leftover = Document.objects.create(
            user=self.user,
            filename=document.filename,
            file_path=document.file_path,
            state=Document.State.DRAFT,
            draft_category=DraftCategory.INTENT,
        )

        delete_document(leftover)

        self.assertTrue(default_storage.exists(document.file_path))
        self.assertTrue(Document.objects.filter(pk=document.pk).exists())


class FormatFileSizeTest(TestCase):
    def test_labels(self):
        self.assertEqual(format_file_size(0), '0 Bytes')
        self.assertEqual(format_file_size(500), '500 Bytes')
        self.assertEqual(format_file_size(1024), '1 KB')
        self.assertEqual(format_file_size(1536), '1.5 KB')
        self.assertEqual(format_file_size(1024 * 1024), '1 MB')


class DocumentViewTest(DocumentTestBase):
    def setUp(self):
        super().setUp()
        self.client.force_login(self.user)
        self.application = PermitApplication.objects.create(
            user=self.user, entity=self.entity, title='Gold lease', permit_type='mining'
        )

    def test_download_by_owner(self):
        document = upload_document(self.user, make_file(content=b'abc'), parent=self.application)
        response = self.client.get(reverse('documents:document_download', args=[document.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(b''.join(response.streaming_content), b'abc')

    def test_download_forbidden_for_other_applicant(self):
        document = upload_document(self.user, make_file(), parent=self.application)
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password')
        self.client.force_login(other)
        response = self.client.get(reverse('documents:document_download', args=[document.pk]))
        self.assertEqual(response.status_code, 403)

    def test_draft_list(self):
        upload_document(self.user, make_file('survey.pdf'), draft_category=DraftCategory.APPLICATION)
        response = self.client.get(reverse('documents:draft_documents', args=[DraftCategory.APPLICATION]))
        self.assertEqual([d['filename'] for d in response.json()['documents']], ['survey.pdf'])

    def test_delete_view(self):
        document = upload_document(self.user, make_file(), parent=self.application)
        response = self.client.post(reverse('documents:document_delete', args=[document.pk]))
        self.assertRedirects(response, reverse('documents:document_list'), fetch_redirect_response=False)
        self.assertFalse(Document.objects.filter(pk=document.pk).exists())

    def test_upload_to_existing_intent_registration(self):
        response = self.client.post(reverse('documents:document_upload'), {
            'file': make_file('site-plan.pdf'),
            'document_type': 'safety',
            'intent_registration': self.intent.pk,
        })

        self.assertRedirects(
            response, reverse('permits:intent_detail', args=[self.intent.pk]), fetch_redirect_response=False
        )
        document = self.intent.documents.get()
        self.assertEqual(document.filename, 'site-plan.pdf')
        self.assertEqual(document.state, Document.State.LINKED)

    def test_cannot_upload_to_another_users_intent_registration(self):
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password')
        self.client.force_login(other)
        response = self.client.post(reverse('documents:document_upload'), {
            'file': make_file(),
            'intent_registration': self.intent.pk,
        })

        self.assertEqual(response.status_code, 200)
        self.assertFalse(self.intent.documents.exists())

    def test_upload_needs_exactly_one_target(self):
        response = self.client.post(reverse('documents:document_upload'), {
            'file': make_file(),
            'permit': self.application.pk,
            'intent_registration': self.intent.pk,
        })

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Document.objects.exists())
