"""
Storage helpers shared by the pipeline services.
"""
from functools import wraps
import logging

from django.db import InterfaceError, OperationalError

from core_backend.exceptions import SyncUnavailable

logger = logging.getLogger(__name__)


def storage_guard(func):
    """
    Surface storage outages and timeouts as a retryable SyncUnavailable.

    The wrapped call is not retried here; retry with backoff belongs to the
    caller. Apply outside ``transaction.atomic`` so the rollback has already
    happened when the error reaches the caller.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.warning(f"Storage unavailable during {func.__qualname__}: {e}")
            raise SyncUnavailable(operation=func.__qualname__) from e

    return wrapper
