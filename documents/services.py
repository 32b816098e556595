"""
Document storage and the draft-then-link protocol.

Blobs live in the object store (Django's default storage); each blob is
described by a Document row. Operations are ordered so that a blob is never
left without a row pointing at it:

    upload:  write blob -> write row
    link:    write linked row -> delete draft row (blob untouched)
    delete:  delete blob -> delete row
"""
import logging
import time
from dataclasses import dataclass, field
from uuid import uuid4

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.db import DatabaseError, transaction
from django.db.models import Exists, OuterRef

from core.exceptions import PartialLinkFailure, StoreError
from permits.models import IntentRegistration, PermitApplication
from .models import Document, DocumentCategory, DraftCategory

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    linked: list = field(default_factory=list)
    failures: list = field(default_factory=list)

    @property
    def linked_count(self):
        return len(self.linked)


def build_storage_key(user, filename):
    """Returns a collision-resistant object store key namespaced by the owner."""
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'bin'
    return f"{user.pk}/documents/{int(time.time() * 1000)}-{uuid4().hex[:12]}.{ext}"


def parent_fields(parent):
    """Maps a parent record onto the Document foreign key that references it."""
    if isinstance(parent, PermitApplication):
        return {'permit': parent}
    if isinstance(parent, IntentRegistration):
        return {'intent_registration': parent}
    raise TypeError(f"Documents cannot be attached to {type(parent).__name__}")


def upload_document(user, uploaded_file, parent=None, draft_category=None, document_type=''):
    """
    Stores an uploaded file and records it.

    With a parent the document is created LINKED; without one it is a DRAFT
    in ``draft_category``, waiting for the parent record to be created.
    """
    if (parent is None) == (not draft_category):
        raise ValueError("Pass either a parent record or a draft category.")
    if draft_category and draft_category not in DraftCategory.values:
        raise ValidationError({'draft_category': f"Unknown draft category '{draft_category}'."})
    if parent is not None and parent.user_id != user.pk:
        raise ValidationError("You can only attach documents to your own records.")

    max_bytes = settings.PERMIT_DOCUMENT_MAX_UPLOAD_BYTES
    if uploaded_file.size > max_bytes:
        raise ValidationError({'file': f"Files must be {format_file_size(max_bytes)} or smaller."})

    if parent is not None:
        state_fields = {'state': Document.State.LINKED, **parent_fields(parent)}
    else:
        state_fields = {'state': Document.State.DRAFT, 'draft_category': draft_category}

    try:
        stored_key = default_storage.save(build_storage_key(user, uploaded_file.name), uploaded_file)
    except OSError as exc:
        raise StoreError(str(exc), operation='upload_blob') from exc

    try:
        with transaction.atomic():
            document = Document.objects.create(
                user=user,
                filename=uploaded_file.name,
                file_path=stored_key,
                file_size=uploaded_file.size,
                mime_type=getattr(uploaded_file, 'content_type', '') or '',
                document_type=document_type or '',
                **state_fields,
            )
    except DatabaseError as exc:
        # The row was never written, so nothing references the blob.
        try:
            default_storage.delete(stored_key)
        except OSError:
            logger.exception("Could not remove unreferenced blob %s", stored_key)
        raise StoreError(str(exc), operation='create_document') from exc

    logger.info("Document %s uploaded by user %s (%s)", document.pk, user.pk, document.state)
    return document


def list_draft_documents(user, category):
    """Drafts still waiting for a parent; a leftover of an interrupted link is skipped."""
    already_linked = Document.objects.linked().filter(file_path=OuterRef('file_path'))
    return Document.objects.owned_by(user).drafts().filter(draft_category=category).exclude(Exists(already_linked))


def link_drafts(user, category, parent):
    """
    Attaches every draft document of ``category`` to ``parent``.

    For each draft a LINKED row is created with the same storage key, then
    the draft row is deleted; the blob is never touched. A failed create
    keeps the draft (the document is not lost). A failed delete leaves a
    harmless duplicate row and still counts as linked. Failures are logged
    and returned on the result, never raised.
    """
    if parent.user_id != user.pk:
        raise ValidationError("You can only attach documents to your own records.")

    result = LinkResult()
    target = parent_fields(parent)

    drafts = list(list_draft_documents(user, category))
    for draft in drafts:
        try:
            with transaction.atomic():
                linked = Document.objects.create(
                    user=draft.user,
                    filename=draft.filename,
                    file_path=draft.file_path,
                    file_size=draft.file_size,
                    mime_type=draft.mime_type,
                    document_type=draft.document_type,
                    state=Document.State.LINKED,
                    **target,
                )
        except DatabaseError as exc:
            logger.exception("Failed to link draft document %s to %s", draft.pk, parent)
            result.failures.append(PartialLinkFailure(draft.pk, 'create_link', exc))
            continue

        result.linked.append(linked)

        try:
            delete_document_record(draft)
        except StoreError as exc:
            logger.warning(
                "Draft document %s linked as %s but its draft row could not be removed: %s",
                draft.pk, linked.pk, exc,
            )
            result.failures.append(PartialLinkFailure(draft.pk, 'delete_draft', exc))

    logger.info("Linked %s of %s draft document(s) to %s", result.linked_count, len(drafts), parent)
    return result


def delete_document_record(document):
    """Deletes the row only; the blob stays in the object store."""
    try:
        with transaction.atomic():
            document.delete()
    except DatabaseError as exc:
        raise StoreError(str(exc), operation='delete_document_record') from exc


def delete_document(document):
    """
    Deletes a document's blob and then its row.

    If the blob cannot be removed the row is left alone. When another row
    still references the same key (a duplicate left by an interrupted link)
    only this row is removed.
    """
    shared = Document.objects.filter(file_path=document.file_path).exclude(pk=document.pk).exists()
    if not shared:
        try:
            default_storage.delete(document.file_path)
        except OSError as exc:
            raise StoreError(str(exc), operation='delete_blob') from exc

    delete_document_record(document)
    logger.info("Document %s deleted", document.file_path)


def open_document(document):
    try:
        return default_storage.open(document.file_path, 'rb')
    except OSError as exc:
        raise StoreError(str(exc), operation='download') from exc


def filter_documents(queryset, category='all', search=''):
    if category and category != 'all':
        queryset = queryset.filter(document_type=category)
    if search:
        queryset = queryset.filter(filename__icontains=search)
    return queryset


def category_counts(queryset):
    counts = {'all': queryset.count()}
    for value in DocumentCategory.values:
        counts[value] = queryset.filter(document_type=value).count()
    return counts


def format_file_size(size):
    if size == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size / (1024 ** exponent), 2)
    return f"{value:g} {units[exponent]}"
