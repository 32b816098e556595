from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import FileResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect
from django.views import View
from django.views.generic import FormView, ListView

from core.exceptions import StoreError
from .forms import DocumentUploadForm
from .models import Document, DocumentCategory, DraftCategory
from .services import (
    category_counts, delete_document, filter_documents, list_draft_documents, open_document, upload_document
)

# Form pages a draft upload returns to
DRAFT_RETURN_URLS = {
    DraftCategory.INTENT: 'permits:intent_create',
    DraftCategory.APPLICATION: 'permits:application_create',
}


def _can_access(user, document):
    return document.user_id == user.pk or user.is_portal_staff


class DocumentListView(LoginRequiredMixin, ListView):
    template_name = 'documents/document_list.html'
    context_object_name = 'documents'
    paginate_by = 10

    def get_base_queryset(self):
        return Document.objects.owned_by(self.request.user).linked().select_related('permit', 'intent_registration')

    def get_queryset(self):
        return filter_documents(
            self.get_base_queryset(),
            category=self.request.GET.get('category', 'all'),
            search=self.request.GET.get('q', '').strip(),
        )

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['categories'] = DocumentCategory.choices
        context['category_counts'] = category_counts(self.get_base_queryset())
        context['category_filter'] = self.request.GET.get('category', 'all')
        context['search_query'] = self.request.GET.get('q', '')
        return context


class DocumentUploadView(LoginRequiredMixin, FormView):
    form_class = DocumentUploadForm
    template_name = 'documents/document_upload.html'

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs['user'] = self.request.user
        return kwargs

    def get_initial(self):
        initial = super().get_initial()
        for name in ('draft_category', 'permit', 'intent_registration'):
            if self.request.GET.get(name):
                initial[name] = self.request.GET[name]
        return initial

    def form_valid(self, form):
        data = form.cleaned_data
        try:
            document = upload_document(
                self.request.user,
                data['file'],
                parent=data['parent'],
                draft_category=data.get('draft_category') or None,
                document_type=data.get('document_type', ''),
            )
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        except StoreError as exc:
            messages.error(self.request, f"Upload failed: {exc}")
            return self.form_invalid(form)

        messages.success(self.request, f"{document.filename} uploaded.")
        if document.is_draft:
            return redirect(DRAFT_RETURN_URLS[document.draft_category])
        if document.intent_registration_id:
            return redirect('permits:intent_detail', pk=document.intent_registration_id)
        return redirect('permits:application_detail', pk=document.permit_id)


@login_required
def draft_documents(request, category):
    """Drafts waiting on a form the applicant is filling in."""
    drafts = list_draft_documents(request.user, category)
    return JsonResponse({
        'documents': [
            {'id': d.pk, 'filename': d.filename, 'file_size': d.file_size, 'document_type': d.document_type}
            for d in drafts
        ]
    })


@login_required
def download_document(request, pk):
    document = get_object_or_404(Document, pk=pk)
    if not _can_access(request.user, document):
        raise PermissionDenied

    try:
        handle = open_document(document)
    except StoreError as exc:
        messages.error(request, f"Download failed: {exc}")
        return redirect('documents:document_list')
    return FileResponse(handle, as_attachment=True, filename=document.filename)


class DocumentDeleteView(LoginRequiredMixin, View):
    def post(self, request, pk):
        document = get_object_or_404(Document, pk=pk)
        if not _can_access(request.user, document):
            messages.error(request, "You do not have permission to delete this document.")
            return redirect('documents:document_list')

        filename = document.filename
        try:
            delete_document(document)
        except StoreError as exc:
            messages.error(request, f"Delete failed: {exc}")
            return redirect('documents:document_list')

        messages.success(request, f"{filename} deleted.")
        return redirect('documents:document_list')
