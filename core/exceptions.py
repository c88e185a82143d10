import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NoApplicableSlabError(APIException):
    """No active credit slab covers the requested subscriber count."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = 'no_applicable_slab'

    def __init__(self, user_count):
        self.user_count = user_count
        super().__init__(f"No credit slab covers {user_count} users")


class InsufficientCreditsError(APIException):
    """A ledger deduction was refused; nothing was written."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_code = 'insufficient_credits'

    def __init__(self, required, available):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits. Required: {required}, available: {available}"
        )


class CreditAccountNotFound(NotFound):
    default_detail = 'Mess credits account not found'
    default_code = 'credit_account_not_found'


class DuplicateAnalyticsEventError(Exception):
    """Raised when an analytics row for (campaign, user, event) already exists.

    Never leaves the analytics module; callers treat it as a no-op.
    """

    def __init__(self, campaign_id, user_id, event_type):
        self.campaign_id = campaign_id
        self.user_id = user_id
        self.event_type = event_type
        super().__init__(f"{event_type} already recorded for campaign {campaign_id}, user {user_id}")


def api_exception_handler(exc, context):
    """DRF exception handler that also renders Django model ValidationErrors."""
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'error_dict'):
            detail = exc.message_dict
        else:
            detail = {'detail': exc.messages}
        logger.info(f"Validation error in {context.get('view').__class__.__name__}: {detail}")
        exc = ValidationError(detail=detail)
    return exception_handler(exc, context)
