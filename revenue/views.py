from django.contrib import messages
from django.contrib.auth.mixins import LoginRequiredMixin
from django.db.models import Q
from django.shortcuts import get_object_or_404, redirect
from django.views import View
from django.views.generic import DetailView, ListView

from accounts.mixins import StaffRequiredMixin
from core.exceptions import StoreError
from .forms import FollowUpForm, PaymentStatusForm, VerificationForm
from .models import Invoice
from .services import schedule_follow_up, update_payment_status, verify_payment


class InvoiceListView(LoginRequiredMixin, ListView):
    template_name = 'revenue/invoice_list.html'
    context_object_name = 'invoices'
    paginate_by = 10

    def get_queryset(self):
        queryset = Invoice.objects.select_related('permit', 'intent_registration', 'assigned_officer')
        if not self.request.user.is_portal_staff:
            queryset = queryset.filter(user=self.request.user)

        payment_status = self.request.GET.get('payment_status', 'all')
        if payment_status != 'all':
            queryset = queryset.filter(payment_status=payment_status)

        search = self.request.GET.get('q', '').strip()
        if search:
            queryset = queryset.filter(Q(invoice_number__icontains=search) | Q(permit__title__icontains=search))
        return queryset

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['payment_statuses'] = Invoice.PaymentStatus.choices
        context['payment_status_filter'] = self.request.GET.get('payment_status', 'all')
        context['search_query'] = self.request.GET.get('q', '')
        return context


class InvoiceDetailView(LoginRequiredMixin, DetailView):
    template_name = 'revenue/invoice_detail.html'
    context_object_name = 'invoice'

    def get_queryset(self):
        queryset = Invoice.objects.select_related('permit', 'intent_registration', 'verified_by')
        if self.request.user.is_portal_staff:
            return queryset
        return queryset.filter(user=self.request.user)

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        if self.request.user.is_portal_staff:
            context['payment_form'] = PaymentStatusForm(initial={'payment_status': self.object.payment_status})
            context['follow_up_form'] = FollowUpForm()
            context['verification_form'] = VerificationForm()
        return context


class InvoiceActionView(LoginRequiredMixin, StaffRequiredMixin, View):
    form_class = None
    success_message = ''

    def perform(self, invoice, data):
        raise NotImplementedError

    def post(self, request, pk):
        invoice = get_object_or_404(Invoice, pk=pk)
        form = self.form_class(request.POST)
        if not form.is_valid():
            messages.error(request, "Please correct the errors in the form.")
            return redirect('revenue:invoice_detail', pk=invoice.pk)

        try:
            self.perform(invoice, form.cleaned_data)
        except StoreError as exc:
            messages.error(request, f"Failed to update invoice: {exc}")
        else:
            messages.success(request, self.success_message.format(number=invoice.invoice_number))
        return redirect('revenue:invoice_detail', pk=invoice.pk)


class InvoicePaymentStatusView(InvoiceActionView):
    form_class = PaymentStatusForm
    success_message = "Invoice {number} payment status updated."

    def perform(self, invoice, data):
        update_payment_status(invoice, data['payment_status'], follow_up_notes=data['follow_up_notes'])


class InvoiceFollowUpView(InvoiceActionView):
    form_class = FollowUpForm
    success_message = "Follow-up scheduled for invoice {number}."

    def perform(self, invoice, data):
        schedule_follow_up(invoice, data['follow_up_date'], data['notes'], officer=self.request.user)


class InvoiceVerifyView(InvoiceActionView):
    form_class = VerificationForm
    success_message = "Payment on invoice {number} verified."

    def perform(self, invoice, data):
        verify_payment(invoice, self.request.user, data['verification_status'], notes=data['notes'])
