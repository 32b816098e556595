from django.contrib.auth.mixins import AccessMixin
from django.shortcuts import redirect
from django.contrib import messages


class AdminRequiredMixin(AccessMixin):
    """Verify that the current user is an admin or super admin."""
    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return self.handle_no_permission()

        if not request.user.is_admin:
            messages.error(request, "You do not have permission to access this page.")
            return redirect('dashboard')

        return super().dispatch(request, *args, **kwargs)


class StaffRequiredMixin(AccessMixin):
    """Verify that the current user belongs to the regulator's staff."""
    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return self.handle_no_permission()

        if not request.user.is_portal_staff:
            messages.error(request, "You do not have permission to access this page.")
            return redirect('dashboard')

        return super().dispatch(request, *args, **kwargs)
