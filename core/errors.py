"""
errors.py
---------
Typed errors raised by the marketplace services, and the DRF exception handler
that turns them (and DRF's own exceptions) into the API error envelope:

    {"success": false, "code": "<kind>", "detail": "<message>"}

Services raise these directly; views let them propagate and DRF calls
marketplace_exception_handler (see REST_FRAMEWORK["EXCEPTION_HANDLER"]).
"""

import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(exceptions.APIException):
    """Base class: every subclass carries a stable code and an HTTP status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "error"
    default_detail = "Request failed."

    @property
    def code(self) -> str:
        return self.default_code


class InvalidArgument(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid-argument"
    default_detail = "Missing required fields."


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not-found"
    default_detail = "Not found."


class PermissionDenied(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "permission-denied"
    default_detail = "Not allowed."


class FailedPrecondition(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "failed-precondition"
    default_detail = "Operation not allowed in the current state."


class AlreadyExists(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "already-exists"
    default_detail = "Already exists."


class ResourceExhausted(MarketplaceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_code = "resource-exhausted"
    default_detail = "Resource exhausted."


class Internal(MarketplaceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "internal"
    default_detail = "Internal error."


# DRF's own exceptions mapped onto our codes
_DRF_CODES = {
    exceptions.ValidationError: InvalidArgument.default_code,
    exceptions.ParseError: InvalidArgument.default_code,
    exceptions.NotAuthenticated: "unauthenticated",
    exceptions.AuthenticationFailed: "unauthenticated",
    exceptions.PermissionDenied: PermissionDenied.default_code,
    exceptions.NotFound: NotFound.default_code,
    exceptions.MethodNotAllowed: "method-not-allowed",
    exceptions.Throttled: ResourceExhausted.default_code,
}


def _code_for(exc) -> str:
    if isinstance(exc, MarketplaceError):
        return exc.code
    if isinstance(exc, Http404):
        return NotFound.default_code
    for exc_type, code in _DRF_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return Internal.default_code


def marketplace_exception_handler(exc, context):
    """
    Render every API error in the same envelope.

    - Validation errors keep their per-field messages under "errors".
    - Anything DRF does not know how to handle is logged and reported as a
      plain "internal" error, without the traceback.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", type(view).__name__ if view else "view")
        return Response(
            {"success": False, "code": Internal.default_code, "detail": Internal.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = {"success": False, "code": _code_for(exc)}
    if isinstance(exc, exceptions.ValidationError):
        body["detail"] = "Invalid request."
        body["errors"] = response.data
    elif isinstance(response.data, dict) and "detail" in response.data:
        body["detail"] = str(response.data["detail"])
    else:
        body["detail"] = str(response.data)

    response.data = body
    return response
