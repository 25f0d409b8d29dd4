"""
Tests for pipeline error rendering and storage failure handling.
"""
import pytest
from django.db import IntegrityError, OperationalError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIRequestFactory

from core_backend.db import storage_guard
from core_backend.exceptions import (
    CapacityExceeded,
    ErrorCategory,
    InvalidSplit,
    NotFound,
    SheetCompletionFailed,
    SheetNotDraft,
    SyncUnavailable,
    pipeline_exception_handler,
)


def render(exc):
    request = APIRequestFactory().post("/api/orders/")
    return pipeline_exception_handler(exc, {"request": request})


class TestExceptionHandler:
    @pytest.mark.parametrize(
        "exc, expected_status",
        [
            (CapacityExceeded(remaining=2), status.HTTP_409_CONFLICT),
            (SheetNotDraft(sheet_id=1), status.HTTP_409_CONFLICT),
            (NotFound(), status.HTTP_404_NOT_FOUND),
            (InvalidSplit(), status.HTTP_400_BAD_REQUEST),
            (SheetCompletionFailed(sheet_id=1), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (SyncUnavailable(), status.HTTP_503_SERVICE_UNAVAILABLE),
        ],
    )
    def test_status_codes(self, exc, expected_status):
        response = render(exc)

        assert response.status_code == expected_status

    def test_payload_is_tagged(self):
        response = render(CapacityExceeded("Only 2 loaves left.", remaining=2))

        assert response.data == {
            "error": "Only 2 loaves left.",
            "code": "CapacityExceeded",
            "category": ErrorCategory.CAPACITY,
            "details": {"remaining": 2},
        }

    def test_transient_errors_ask_for_retry(self):
        response = render(SyncUnavailable(operation="submit"))

        assert response["Retry-After"] == "1"
        assert response.data["category"] == ErrorCategory.TRANSIENT

    def test_other_errors_do_not_ask_for_retry(self):
        response = render(InvalidSplit())

        assert not response.has_header("Retry-After")

    def test_non_pipeline_errors_use_drf_defaults(self):
        response = render(ValidationError({"quantity": ["This field is required."]}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "code" not in response.data

    def test_only_transient_errors_are_retryable(self):
        assert SyncUnavailable().retryable is True
        assert SheetCompletionFailed().retryable is False
        assert CapacityExceeded().retryable is False


class TestStorageGuard:
    def test_operational_error_becomes_sync_unavailable(self):
        @storage_guard
        def flaky():
            raise OperationalError("could not connect to server")

        with pytest.raises(SyncUnavailable) as exc_info:
            flaky()

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert "flaky" in exc_info.value.details["operation"]

    def test_other_database_errors_propagate(self):
        @storage_guard
        def broken():
            raise IntegrityError("duplicate key")

        with pytest.raises(IntegrityError):
            broken()

    def test_return_value_passes_through(self):
        @storage_guard
        def fine(value):
            return value * 2

        assert fine(21) == 42


@pytest.mark.django_db
def test_health_check(api_client):
    response = api_client.get("/api/health/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ok"
