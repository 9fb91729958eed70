# accounting/api/errors.py

"""
SERVICE ERROR -> HTTP MAPPING

Views catch LedgerServiceError and return service_error_response(exc).
Anything that escapes a view is mapped by exception_handler (REST_FRAMEWORK
EXCEPTION_HANDLER setting).
"""

from decimal import Decimal

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from accounting.services.exceptions import (
    BalanceInconsistencyError,
    IdempotencyError,
    LedgerServiceError,
    LedgerValidationError,
    NotFoundError,
    PersistenceFailure,
)
from products.services.stock import InsufficientStockError


def service_error_response(exc: LedgerServiceError) -> Response:
    body = {"detail": str(exc)}

    if isinstance(exc, LedgerValidationError):
        if exc.field:
            body["field"] = exc.field
        return Response(body, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, NotFoundError):
        return Response(body, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, InsufficientStockError):
        body.update(
            {
                "product_id": str(exc.product_id),
                "product_name": exc.product_name,
                "available": exc.available,
                "requested": exc.requested,
            }
        )
        return Response(body, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, BalanceInconsistencyError):
        body.update(
            {
                "register": str(exc.register) if exc.register is not None else None,
                "ledger": str(exc.ledger) if exc.ledger is not None else None,
            }
        )
        return Response(body, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, IdempotencyError):
        return Response(body, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, PersistenceFailure):
        return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response(body, status=status.HTTP_400_BAD_REQUEST)


def jsonable(value):
    """Decimal -> 2dp string, recursively (matches DRF DecimalField output)."""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


def exception_handler(exc, context):
    if isinstance(exc, LedgerServiceError):
        return service_error_response(exc)
    return drf_exception_handler(exc, context)
