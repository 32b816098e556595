from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from .models import Notification
from .services import mark_all_read, notify_user

User = get_user_model()


class NotificationTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='a@example.com', email='a@example.com', password='password')
        self.other = User.objects.create_user(username='b@example.com', email='b@example.com', password='password')

    def test_mark_all_read_only_touches_own_notifications(self):
        notify_user(self.user, 'One', 'First')
        notify_user(self.user, 'Two', 'Second', type=Notification.Type.PAYMENT)
        notify_user(self.other, 'Other', 'Not mine')

        self.assertEqual(mark_all_read(self.user), 2)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())
        self.assertTrue(Notification.objects.filter(user=self.other, is_read=False).exists())

    def test_cannot_mark_another_users_notification(self):
        notification = notify_user(self.other, 'Other', 'Not mine')
        self.client.force_login(self.user)
        response = self.client.post(reverse('notifications:notification_read', args=[notification.pk]))
        self.assertEqual(response.status_code, 404)

    def test_list_shows_own_notifications(self):
        notify_user(self.user, 'Application Approved', 'Your permit was approved.')
        self.client.force_login(self.user)
        response = self.client.get(reverse('notifications:notification_list'))
        self.assertContains(response, 'Application Approved')
