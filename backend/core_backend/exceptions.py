"""
Tagged errors for the order fulfillment pipeline.

Every error carries a ``code`` (what went wrong) and a ``category`` (how the
caller should react). Callers branch on ``code``, not on the Python class, so
the HTTP layer and the CLI can render the same error the same way.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ErrorCategory:
    CAPACITY = "capacity"
    LIFECYCLE = "lifecycle"
    CONSISTENCY = "consistency"
    TRANSIENT = "transient"


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    code = "PipelineError"
    category = ErrorCategory.LIFECYCLE
    default_message = "The request could not be completed."

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.category == ErrorCategory.TRANSIENT

    def as_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "category": self.category,
            "details": self.details,
        }


# --- Capacity errors ---

class SlotNotFound(PipelineError):
    code = "SlotNotFound"
    category = ErrorCategory.CAPACITY
    default_message = "Bake slot not found."


class SlotClosed(PipelineError):
    code = "SlotClosed"
    category = ErrorCategory.CAPACITY
    default_message = "This bake slot is closed for new orders."


class CapacityExceeded(PipelineError):
    code = "CapacityExceeded"
    category = ErrorCategory.CAPACITY
    default_message = "Not enough capacity for this order."


# --- Lifecycle errors ---

class NotFound(PipelineError):
    code = "NotFound"
    default_message = "Record not found."


class InvalidOrder(PipelineError):
    code = "InvalidOrder"
    default_message = "Invalid order data."


class InvalidTransition(PipelineError):
    code = "InvalidTransition"
    default_message = "This status change is not allowed."


class SheetNotDraft(PipelineError):
    code = "SheetNotDraft"
    default_message = "Prep sheet is already completed."


class DuplicateActiveSheet(PipelineError):
    code = "DuplicateActiveSheet"
    default_message = "A draft prep sheet already exists for this bake date."


class OrderNotEligible(PipelineError):
    code = "OrderNotEligible"
    default_message = "Order cannot be added to this prep sheet."


class EmptySheet(PipelineError):
    code = "EmptySheet"
    default_message = "Prep sheet has no items."


class InvalidQuantity(PipelineError):
    code = "InvalidQuantity"
    default_message = "Invalid quantity."


class InvalidSplit(PipelineError):
    code = "InvalidSplit"
    default_message = "Split quantity must be at least 1 and less than the record quantity."


class InvalidSalePrice(PipelineError):
    code = "InvalidSalePrice"
    default_message = "A sale price of zero or more is required for sold loaves."


# --- Consistency errors ---

class SheetCompletionFailed(PipelineError):
    code = "SheetCompletionFailed"
    category = ErrorCategory.CONSISTENCY
    default_message = "Prep sheet completion failed; nothing was saved. Retry the whole completion."


# --- Transient errors ---

class SyncUnavailable(PipelineError):
    code = "SyncUnavailable"
    category = ErrorCategory.TRANSIENT
    default_message = "Storage is temporarily unavailable. Please retry."


class ReleaseUnderflow(UserWarning):
    """Warned when a release would drive a capacity counter below zero."""


STATUS_BY_CODE = {
    SlotNotFound.code: status.HTTP_404_NOT_FOUND,
    NotFound.code: status.HTTP_404_NOT_FOUND,
    SlotClosed.code: status.HTTP_409_CONFLICT,
    CapacityExceeded.code: status.HTTP_409_CONFLICT,
    SheetNotDraft.code: status.HTTP_409_CONFLICT,
    DuplicateActiveSheet.code: status.HTTP_409_CONFLICT,
    InvalidTransition.code: status.HTTP_409_CONFLICT,
}

STATUS_BY_CATEGORY = {
    ErrorCategory.CAPACITY: status.HTTP_409_CONFLICT,
    ErrorCategory.LIFECYCLE: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.CONSISTENCY: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCategory.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def pipeline_exception_handler(exc, context):
    """
    DRF exception handler that renders PipelineError as a tagged payload.
    Everything else falls through to the default DRF handler.
    """
    if isinstance(exc, PipelineError):
        http_status = STATUS_BY_CODE.get(
            exc.code, STATUS_BY_CATEGORY.get(exc.category, status.HTTP_400_BAD_REQUEST)
        )
        request = context.get("request")
        path = request.path if request is not None else ""
        if exc.category in (ErrorCategory.CONSISTENCY, ErrorCategory.TRANSIENT):
            logger.error(f"Pipeline error {exc.code} on {path}: {exc.message}")
        else:
            logger.info(f"Pipeline error {exc.code} on {path}: {exc.message}")
        response = Response(exc.as_dict(), status=http_status)
        if exc.retryable:
            response["Retry-After"] = "1"
        return response

    return exception_handler(exc, context)
