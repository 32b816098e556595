import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.contrib.auth.views import LoginView
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404, redirect
from django.urls import reverse_lazy
from django.views import View
from django.views.generic import FormView, ListView

from core.exceptions import StoreError, SuspensionError
from .forms import StaffUserCreationForm, SuspendUserForm, SuspensionAwareAuthenticationForm
from .mixins import AdminRequiredMixin
from .models import User
from .services import create_staff_user, filter_users, send_password_reset, set_suspension

logger = logging.getLogger(__name__)


class PortalLoginView(LoginView):
    authentication_form = SuspensionAwareAuthenticationForm
    redirect_authenticated_user = True
    template_name = 'accounts/login.html'


class UserListView(LoginRequiredMixin, AdminRequiredMixin, ListView):
    model = User
    template_name = 'accounts/user_list.html'
    context_object_name = 'users'
    paginate_by = 10
    ordering = ['-date_joined']

    def get_queryset(self):
        queryset = super().get_queryset()
        return filter_users(
            queryset,
            search=self.request.GET.get('q', '').strip(),
            user_type=self.request.GET.get('user_type', 'all'),
            status=self.request.GET.get('status', 'all'),
        )

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['user_types'] = User.UserType.choices
        context['search_query'] = self.request.GET.get('q', '')
        context['user_type_filter'] = self.request.GET.get('user_type', 'all')
        context['status_filter'] = self.request.GET.get('status', 'all')
        context['suspend_form'] = SuspendUserForm()
        return context


class UserSuspendView(LoginRequiredMixin, AdminRequiredMixin, View):
    """Suspends an active user or reactivates a suspended one."""

    def post(self, request, pk):
        target = get_object_or_404(User, pk=pk)
        suspend = not target.is_suspended
        form = SuspendUserForm(request.POST)
        reason = form.data.get('reason', '')

        try:
            set_suspension(target, suspend, acting_user=request.user, reason=reason)
        except SuspensionError as exc:
            messages.error(request, str(exc))
            return redirect('user_list')
        except StoreError as exc:
            messages.error(request, f"Failed to update user status: {exc}")
            return redirect('user_list')

        messages.success(request, f"User {'suspended' if suspend else 'reactivated'} successfully.")
        return redirect('user_list')


class StaffUserCreateView(LoginRequiredMixin, AdminRequiredMixin, FormView):
    form_class = StaffUserCreationForm
    template_name = 'accounts/staff_user_form.html'
    success_url = reverse_lazy('user_list')

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['title'] = 'Create Staff User'
        return context

    def form_valid(self, form):
        try:
            user = create_staff_user(**form.cleaned_data)
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        except StoreError as exc:
            messages.error(self.request, str(exc))
            return self.form_invalid(form)

        messages.success(self.request, f"Staff user {user.email} created successfully.")
        return super().form_valid(form)


@login_required
def reset_password(request, pk):
    if not request.user.is_admin:
        messages.error(request, "You do not have permission to perform this action.")
        return redirect('dashboard')
    if request.method != 'POST':
        return redirect('user_list')

    user = get_object_or_404(User, pk=pk)
    try:
        send_password_reset(user, request)
    except ValidationError as exc:
        messages.error(request, " ".join(exc.messages))
        return redirect('user_list')

    messages.success(request, f"Password reset email sent to {user.email}.")
    return redirect('user_list')
