from django.contrib import admin
from .models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'user', 'amount', 'currency', 'payment_status', 'due_date', 'verification_status')
    list_filter = ('payment_status', 'invoice_type', 'verification_status')
    search_fields = ('invoice_number', 'user__email', 'permit__title')
    readonly_fields = ('paid_date', 'verified_by', 'verified_at', 'created_at', 'updated_at')

    def has_delete_permission(self, request, obj=None):
        return False
