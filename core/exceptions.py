"""Workflow exceptions shared by the permit, document and account services."""
from django.core.exceptions import ValidationError


class WorkflowError(Exception):
    """Base class for errors raised by the workflow services."""


class StoreError(WorkflowError):
    """The database or object store rejected or failed an operation.

    The store's own message is kept verbatim so it can be shown to the user.
    """

    def __init__(self, message, operation=""):
        super().__init__(message)
        self.operation = operation


class InvalidDateRange(ValidationError):
    def __init__(self, message="Completion date must be after commencement date."):
        super().__init__({"completion_date": [message]}, code="invalid_date_range")


class InvalidTransition(WorkflowError):
    def __init__(self, current, requested):
        super().__init__(f"Cannot move from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested


class PartialLinkFailure(WorkflowError):
    """One step of linking a draft document failed.

    Never raised by the linking service; collected on the link result.
    """

    def __init__(self, document_id, step, error):
        super().__init__(f"Linking document {document_id} failed at '{step}': {error}")
        self.document_id = document_id
        self.step = step
        self.error = error


class SuspensionError(WorkflowError):
    pass


class ProtectedAccount(SuspensionError):
    def __init__(self, message="Super admin accounts cannot be suspended."):
        super().__init__(message)


class ReasonRequired(SuspensionError):
    def __init__(self, message="Please provide a reason for suspension."):
        super().__init__(message)
