from django.contrib import messages
from django.contrib.auth.mixins import LoginRequiredMixin
from django.shortcuts import get_object_or_404, redirect
from django.views import View
from django.views.generic import ListView

from .models import Notification
from .services import mark_all_read


class NotificationListView(LoginRequiredMixin, ListView):
    template_name = 'notifications/notification_list.html'
    context_object_name = 'notifications'
    paginate_by = 20

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user)
        if self.request.GET.get('unread'):
            queryset = queryset.filter(is_read=False)
        return queryset


class NotificationReadView(LoginRequiredMixin, View):
    def post(self, request, pk):
        notification = get_object_or_404(Notification, pk=pk, user=request.user)
        notification.is_read = True
        notification.save(update_fields=['is_read'])
        return redirect('notifications:notification_list')


class NotificationReadAllView(LoginRequiredMixin, View):
    def post(self, request):
        count = mark_all_read(request.user)
        messages.success(request, f"{count} notification(s) marked as read.")
        return redirect('notifications:notification_list')
