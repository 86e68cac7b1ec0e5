"""
Domain exceptions for invoices app.

Service errors are plain exceptions mapped to responses in the views.
A missing invoice is an APIException so DRF answers 404 on its own.
"""
from rest_framework.exceptions import APIException


class InvoiceServiceError(Exception):
    """Base exception for invoice service errors."""
    pass


class InvoiceValidationError(InvoiceServiceError):
    """Raised when invoice input is malformed (no items, bad dates, negative amounts)."""
    pass


class InvalidInvoiceTransitionError(InvoiceServiceError):
    """Raised when an invoice cannot move to the requested status."""
    pass


class InvoiceNotFoundError(APIException):
    """Invoice not found or not owned by the current user."""
    status_code = 404
    default_detail = 'Invoice not found.'
    default_code = 'invoice_not_found'
