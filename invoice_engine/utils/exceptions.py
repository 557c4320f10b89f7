from decimal import Decimal
from typing import Optional, Dict, Any, Union


class InvoiceEngineException(Exception):
    """Base exception for the invoice settlement engine"""
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} (Code: {self.error_code})" if self.error_code else self.message


class ValidationError(InvoiceEngineException):
    """Malformed line, perception, note or collection input"""
    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, reason: Optional[str] = None):
        details: Dict[str, Any] = {"field": field}
        if value is not None:
            details["value"] = str(value)
        if reason:
            details["reason"] = reason
        super().__init__(message, "VALIDATION_ERROR", details)


class OverAllocationError(InvoiceEngineException):
    """A settlement event would drive the pending amount below zero"""
    def __init__(
        self,
        invoice_id: str,
        event_id: str,
        pending_amount: Union[Decimal, str],
        requested_amount: Union[Decimal, str]
    ):
        message = (
            f"Allocation of {requested_amount} exceeds pending amount {pending_amount} "
            f"for invoice {invoice_id} (event {event_id})"
        )
        details: Dict[str, Any] = {
            "invoice_id": invoice_id,
            "event_id": event_id,
            "pending_amount": str(pending_amount),
            "requested_amount": str(requested_amount),
            "difference": str(Decimal(str(requested_amount)) - Decimal(str(pending_amount)))
        }
        super().__init__(message, "OVER_ALLOCATION", details)


class CurrencyMismatchError(InvoiceEngineException):
    """Event currency differs from the target invoice currency"""
    def __init__(self, invoice_id: str, event_id: str, expected: str, actual: str):
        message = f"Event {event_id} is in {actual} but invoice {invoice_id} is in {expected}"
        details = {"invoice_id": invoice_id, "event_id": event_id, "expected": expected, "actual": actual}
        super().__init__(message, "CURRENCY_MISMATCH", details)


class DuplicateApplicationError(InvoiceEngineException):
    """The same collection or note was already applied"""
    def __init__(self, invoice_id: str, event_id: str):
        message = f"Event {event_id} was already applied to invoice {invoice_id}"
        super().__init__(message, "DUPLICATE_APPLICATION", {"invoice_id": invoice_id, "event_id": event_id})


class StaleRecomputeError(InvoiceEngineException):
    """The invoice changed between read and write"""
    def __init__(self, invoice_id: str, expected_version: int, actual_version: int):
        message = (
            f"Invoice {invoice_id} was modified concurrently - "
            f"expected version {expected_version}, found {actual_version}"
        )
        details = {
            "invoice_id": invoice_id,
            "expected_version": expected_version,
            "actual_version": actual_version
        }
        super().__init__(message, "STALE_RECOMPUTE", details)


class NotFoundError(InvoiceEngineException):
    """Generic not found error"""
    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})
