from django.contrib import messages
from django.contrib.auth.mixins import LoginRequiredMixin
from django.db.models import Q
from django.urls import reverse_lazy
from django.views.generic import CreateView, ListView

from permits.models import ActivityLevel, PermitApplication
from .forms import EntityForm
from .models import Entity


class EntityListView(LoginRequiredMixin, ListView):
    """Staff see every registered entity; applicants see their own."""
    template_name = 'registry/entity_list.html'
    context_object_name = 'entities'
    paginate_by = 10

    def get_queryset(self):
        queryset = Entity.objects.all()
        if not self.request.user.is_portal_staff:
            queryset = queryset.filter(owner=self.request.user)

        search = self.request.GET.get('q', '').strip()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(registration_number__icontains=search) | Q(email__icontains=search)
            )

        entity_type = self.request.GET.get('entity_type', 'all')
        if entity_type != 'all':
            queryset = queryset.filter(entity_type=entity_type)

        status = self.request.GET.get('status', 'all')
        if status == 'active':
            queryset = queryset.filter(is_suspended=False)
        elif status == 'suspended':
            queryset = queryset.filter(is_suspended=True)

        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['entity_types'] = Entity.EntityType.choices
        context['search_query'] = self.request.GET.get('q', '')
        context['entity_type_filter'] = self.request.GET.get('entity_type', 'all')
        context['status_filter'] = self.request.GET.get('status', 'all')
        return context


class EntityCreateView(LoginRequiredMixin, CreateView):
    model = Entity
    form_class = EntityForm
    template_name = 'registry/entity_form.html'
    success_url = reverse_lazy('registry:entity_list')

    def form_valid(self, form):
        form.instance.owner = self.request.user
        messages.success(self.request, f"Entity {form.instance.name} registered.")
        return super().form_valid(form)


class PermitRegisterView(LoginRequiredMixin, ListView):
    """Public register of issued permits."""
    template_name = 'registry/permit_register.html'
    context_object_name = 'permits'
    paginate_by = 10

    def get_queryset(self):
        queryset = (
            PermitApplication.objects
            .filter(status=PermitApplication.Status.APPROVED, permit_number__isnull=False)
            .select_related('entity')
            .order_by('-approval_date')
        )

        search = self.request.GET.get('q', '').strip()
        if search:
            queryset = queryset.filter(
                Q(permit_number__icontains=search) | Q(title__icontains=search) | Q(entity__name__icontains=search)
            )

        permit_type = self.request.GET.get('permit_type', 'all')
        if permit_type != 'all':
            queryset = queryset.filter(permit_type=permit_type)

        entity = self.request.GET.get('entity', '')
        if entity.isdigit():
            queryset = queryset.filter(entity_id=entity)

        level = self.request.GET.get('activity_level', 'all')
        if level != 'all':
            queryset = queryset.filter(activity_level=level)

        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        approved = PermitApplication.objects.filter(status=PermitApplication.Status.APPROVED)
        context['permit_types'] = approved.order_by('permit_type').values_list('permit_type', flat=True).distinct()
        context['activity_levels'] = ActivityLevel.choices
        context['entities'] = Entity.objects.filter(permit_applications__in=approved).distinct()
        context['search_query'] = self.request.GET.get('q', '')
        return context
