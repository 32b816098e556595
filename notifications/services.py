from .models import Notification


def notify_user(user, title, message, type=Notification.Type.INFO):
    return Notification.objects.create(user=user, title=title, message=message, type=type)


def mark_all_read(user):
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)
