from django.contrib import messages
from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404, redirect, render
from django.views import View
from django.views.generic import DetailView, ListView

from accounts.mixins import StaffRequiredMixin
from core.exceptions import InvalidTransition, StoreError
from documents.models import DraftCategory
from documents.services import link_drafts, list_draft_documents
from .forms import AssessmentForm, IntentRegistrationForm, PermitApplicationForm, TransitionForm
from .models import IntentRegistration, PermitApplication
from .services import (
    APPLICATION_TRANSITIONS, INTENT_TRANSITIONS,
    record_initial_assessment, save_application_draft, submit_application,
    submit_draft_application, submit_intent, transition_application, transition_intent,
)


def report_link_result(request, result):
    if result.linked_count:
        messages.success(request, f"Documents Linked: {result.linked_count} document(s) linked.")
    if result.failures:
        messages.warning(
            request,
            f"{len(result.failures)} document(s) could not be fully linked. "
            "Any document not linked is still listed under your drafts.",
        )


def visible_to(user, queryset):
    if user.is_portal_staff:
        return queryset
    return queryset.filter(user=user)


class IntentCreateView(LoginRequiredMixin, View):
    template_name = 'permits/intent_form.html'

    def render_form(self, request, form):
        return render(request, self.template_name, {
            'form': form,
            'draft_documents': list_draft_documents(request.user, DraftCategory.INTENT),
            'draft_category': DraftCategory.INTENT,
        })

    def get(self, request):
        return self.render_form(request, IntentRegistrationForm(user=request.user))

    def post(self, request):
        form = IntentRegistrationForm(request.POST, user=request.user)
        if not form.is_valid():
            return self.render_form(request, form)

        try:
            intent = submit_intent(request.user, form.cleaned_data)
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.render_form(request, form)
        except StoreError as exc:
            messages.error(request, f"Failed to submit intent registration: {exc}")
            return self.render_form(request, form)

        messages.success(request, "Intent registration submitted successfully.")
        report_link_result(request, link_drafts(request.user, DraftCategory.INTENT, intent))
        return redirect('permits:intent_detail', pk=intent.pk)


class IntentListView(LoginRequiredMixin, ListView):
    template_name = 'permits/intent_list.html'
    context_object_name = 'intents'
    paginate_by = 10

    def get_queryset(self):
        queryset = visible_to(self.request.user, IntentRegistration.objects.select_related('entity', 'user'))
        status = self.request.GET.get('status', 'all')
        if status != 'all':
            queryset = queryset.filter(status=status)
        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = IntentRegistration.Status.choices
        context['status_filter'] = self.request.GET.get('status', 'all')
        return context


class IntentDetailView(LoginRequiredMixin, DetailView):
    template_name = 'permits/intent_detail.html'
    context_object_name = 'intent'

    def get_queryset(self):
        return visible_to(self.request.user, IntentRegistration.objects.select_related('entity'))

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['documents'] = self.object.documents.all()
        context['history'] = self.object.status_changes.select_related('by_user')
        if self.request.user.is_portal_staff:
            context['transition_form'] = TransitionForm(
                allowed_statuses=INTENT_TRANSITIONS.get(self.object.status, ()),
                choices=IntentRegistration.Status.choices,
            )
        return context


class ApplicationCreateView(LoginRequiredMixin, View):
    """New application; ``action=draft`` saves it, anything else submits it."""
    template_name = 'permits/application_form.html'

    def render_form(self, request, form):
        return render(request, self.template_name, {
            'form': form,
            'draft_documents': list_draft_documents(request.user, DraftCategory.APPLICATION),
            'draft_category': DraftCategory.APPLICATION,
        })

    def get(self, request):
        return self.render_form(request, PermitApplicationForm(user=request.user))

    def post(self, request):
        form = PermitApplicationForm(request.POST, user=request.user)
        if not form.is_valid():
            return self.render_form(request, form)

        save_as_draft = request.POST.get('action') == 'draft'
        try:
            if save_as_draft:
                application = save_application_draft(request.user, form.cleaned_data)
            else:
                application = submit_application(request.user, form.cleaned_data)
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.render_form(request, form)
        except StoreError as exc:
            messages.error(request, f"Failed to save application: {exc}")
            return self.render_form(request, form)

        if save_as_draft:
            messages.success(request, "Application saved as draft.")
        else:
            messages.success(request, f"Application {application.application_number} submitted successfully.")
        report_link_result(request, link_drafts(request.user, DraftCategory.APPLICATION, application))
        return redirect('permits:application_detail', pk=application.pk)


class ApplicationListView(LoginRequiredMixin, ListView):
    template_name = 'permits/application_list.html'
    context_object_name = 'applications'
    paginate_by = 10

    def get_queryset(self):
        queryset = visible_to(self.request.user, PermitApplication.objects.select_related('entity', 'user'))
        status = self.request.GET.get('status', 'all')
        if status != 'all':
            queryset = queryset.filter(status=status)
        search = self.request.GET.get('q', '').strip()
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) | Q(application_number__icontains=search) | Q(entity__name__icontains=search)
            )
        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['statuses'] = PermitApplication.Status.choices
        context['status_filter'] = self.request.GET.get('status', 'all')
        context['search_query'] = self.request.GET.get('q', '')
        return context


class ApplicationDetailView(LoginRequiredMixin, DetailView):
    template_name = 'permits/application_detail.html'
    context_object_name = 'application'

    def get_queryset(self):
        return visible_to(self.request.user, PermitApplication.objects.select_related('entity', 'intent_registration'))

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['documents'] = self.object.documents.all()
        context['assessments'] = self.object.initial_assessments.select_related('assessed_by')
        context['history'] = self.object.status_changes.select_related('by_user')
        if self.request.user.is_portal_staff:
            context['transition_form'] = TransitionForm(
                allowed_statuses=APPLICATION_TRANSITIONS.get(self.object.status, ()),
                choices=PermitApplication.Status.choices,
            )
            if self.object.status == PermitApplication.Status.UNDER_INITIAL_REVIEW:
                context['assessment_form'] = AssessmentForm()
        return context


class ApplicationSubmitView(LoginRequiredMixin, View):
    """Submits one of the applicant's own drafts."""

    def post(self, request, pk):
        application = get_object_or_404(PermitApplication, pk=pk, user=request.user)
        try:
            submit_draft_application(application, request.user)
        except InvalidTransition:
            messages.error(request, "Only draft applications can be submitted.")
        except StoreError as exc:
            messages.error(request, f"Failed to submit application: {exc}")
        else:
            messages.success(request, f"Application {application.application_number} submitted successfully.")
        return redirect('permits:application_detail', pk=application.pk)


class ApplicationTransitionView(LoginRequiredMixin, StaffRequiredMixin, View):
    def post(self, request, pk):
        application = get_object_or_404(PermitApplication, pk=pk)
        form = TransitionForm(
            request.POST,
            allowed_statuses=APPLICATION_TRANSITIONS.get(application.status, ()),
            choices=PermitApplication.Status.choices,
        )
        if not form.is_valid():
            messages.error(request, "Select a valid next status.")
            return redirect('permits:application_detail', pk=application.pk)

        try:
            transition_application(
                application, form.cleaned_data['status'], by_user=request.user, remarks=form.cleaned_data['remarks']
            )
        except (InvalidTransition, StoreError) as exc:
            messages.error(request, str(exc))
        else:
            messages.success(request, f"Application moved to {application.get_status_display()}.")
        return redirect('permits:application_detail', pk=application.pk)


class IntentTransitionView(LoginRequiredMixin, StaffRequiredMixin, View):
    def post(self, request, pk):
        intent = get_object_or_404(IntentRegistration, pk=pk)
        form = TransitionForm(
            request.POST,
            allowed_statuses=INTENT_TRANSITIONS.get(intent.status, ()),
            choices=IntentRegistration.Status.choices,
        )
        if not form.is_valid():
            messages.error(request, "Select a valid next status.")
            return redirect('permits:intent_detail', pk=intent.pk)

        try:
            transition_intent(intent, form.cleaned_data['status'], by_user=request.user, remarks=form.cleaned_data['remarks'])
        except (InvalidTransition, StoreError) as exc:
            messages.error(request, str(exc))
        else:
            messages.success(request, f"Intent registration moved to {intent.get_status_display()}.")
        return redirect('permits:intent_detail', pk=intent.pk)


class AssessmentCreateView(LoginRequiredMixin, StaffRequiredMixin, View):
    def post(self, request, pk):
        application = get_object_or_404(
            PermitApplication, pk=pk, status=PermitApplication.Status.UNDER_INITIAL_REVIEW
        )
        form = AssessmentForm(request.POST)
        if not form.is_valid():
            messages.error(request, "Select an assessment outcome.")
            return redirect('permits:application_detail', pk=application.pk)

        record_initial_assessment(
            application,
            assessed_by=request.user,
            outcome=form.cleaned_data['assessment_outcome'],
            feedback=form.cleaned_data['feedback_provided'],
            notes=form.cleaned_data['assessment_notes'],
        )
        messages.success(request, "Initial assessment recorded.")
        return redirect('permits:application_detail', pk=application.pk)
