from django.contrib import admin
from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('filename', 'user', 'state', 'document_type', 'permit', 'intent_registration', 'uploaded_at')
    list_filter = ('state', 'document_type', 'draft_category')
    search_fields = ('filename', 'file_path', 'user__email')
    readonly_fields = ('file_path', 'file_size', 'mime_type', 'uploaded_at')
