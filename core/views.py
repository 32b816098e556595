from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render

from permits.models import PermitApplication
from .services import build_activity_feed, get_dashboard_stats


def landing(request):
    """Public home page."""
    if request.user.is_authenticated:
        return redirect('dashboard')
    return render(request, 'core/landing.html')


@login_required
def dashboard(request):
    context = {
        'stats': get_dashboard_stats(request.user),
        'activity_feed': build_activity_feed(request.user),
    }

    if request.user.is_portal_staff:
        # Review queue for registry and technical officers
        context['review_queue'] = {
            'awaiting_screening': PermitApplication.objects.filter(status=PermitApplication.Status.SUBMITTED).count(),
            'in_initial_review': PermitApplication.objects.filter(
                status=PermitApplication.Status.UNDER_INITIAL_REVIEW
            ).count(),
            'awaiting_technical': PermitApplication.objects.filter(
                status=PermitApplication.Status.PENDING_TECHNICAL_ASSESSMENT
            ).count(),
        }

    return render(request, 'core/dashboard.html', context)
