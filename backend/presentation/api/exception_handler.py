import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from domain.shared.exceptions import (
    BusinessRuleViolationException,
    DomainException,
    EntityAlreadyExistsException,
    EntityNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins
DOMAIN_STATUS_CODES = (
    (EntityNotFoundException, status.HTTP_404_NOT_FOUND),
    (EntityAlreadyExistsException, status.HTTP_409_CONFLICT),
    (BusinessRuleViolationException, status.HTTP_409_CONFLICT),
    (ValidationException, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: DomainException) -> int:
    for exc_class, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc, context):
    """
    Map domain exceptions to JSON error bodies; defer everything else to DRF.
    """
    if isinstance(exc, DomainException):
        status_code = status_for(exc)
        view = context.get('view')
        logger.warning(
            f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(
            {
                'detail': exc.message,
                'error': exc.code,
                'details': exc.details,
            },
            status=status_code,
        )

    return exception_handler(exc, context)
