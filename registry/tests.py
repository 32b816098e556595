import datetime

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from permits.models import PermitApplication
from .models import Entity

User = get_user_model()


class EntityListViewTest(TestCase):
    def setUp(self):
        self.applicant = User.objects.create_user(username='a@example.com', email='a@example.com', password='password')
        self.officer = User.objects.create_user(
            username='o@example.com', email='o@example.com', password='password', user_type=User.UserType.STAFF
        )
        self.mine = Entity.objects.create(
            owner=self.applicant, name='Kumul Mining', entity_type='company', registration_number='1-23456'
        )
        self.other = Entity.objects.create(
            owner=self.officer, name='Sepik Timber', entity_type='company', is_suspended=True
        )

    def test_applicant_sees_own_entities(self):
        self.client.force_login(self.applicant)
        response = self.client.get(reverse('registry:entity_list'))
        self.assertEqual(list(response.context['entities']), [self.mine])

    def test_staff_filters(self):
        self.client.force_login(self.officer)
        response = self.client.get(reverse('registry:entity_list'), {'status': 'suspended'})
        self.assertEqual(list(response.context['entities']), [self.other])

        response = self.client.get(reverse('registry:entity_list'), {'q': '1-234'})
        self.assertEqual(list(response.context['entities']), [self.mine])

    def test_create_sets_owner(self):
        self.client.force_login(self.applicant)
        self.client.post(reverse('registry:entity_create'), {'name': 'Highlands Quarry', 'entity_type': 'individual'})
        self.assertEqual(Entity.objects.get(name='Highlands Quarry').owner, self.applicant)


class PermitRegisterViewTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='a@example.com', email='a@example.com', password='password')
        self.entity = Entity.objects.create(owner=self.user, name='Kumul Mining', entity_type='company')

    def make_application(self, title, status, permit_number=None, approval_date=None):
        return PermitApplication.objects.create(
            user=self.user, entity=self.entity, title=title, permit_type='mining',
            status=status, permit_number=permit_number, approval_date=approval_date,
        )

    def test_lists_only_issued_permits_newest_first(self):
        now = timezone.now()
        older = self.make_application('Old lease', 'approved', 'PER/2025/0001', now - datetime.timedelta(days=30))
        newer = self.make_application('New lease', 'approved', 'PER/2026/0001', now)
        self.make_application('Pending lease', 'submitted')

        self.client.force_login(self.user)
        response = self.client.get(reverse('registry:permit_register'))

        self.assertEqual(list(response.context['permits']), [newer, older])
