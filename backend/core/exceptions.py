import logging

from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.errors import ErrorCode, InternalError, ServiceError

logger = logging.getLogger(__name__)


def _error_response(code: ErrorCode, detail, status_code: int) -> Response:
    return Response({"code": code.value, "detail": detail}, status=status_code)


def api_exception_handler(exc, context):
    """
    Render service errors as ``{"code": ..., "detail": ...}``.

    Store failures are logged with the view context and returned as an opaque
    INTERNAL_ERROR so database internals never leak to clients.
    """
    if isinstance(exc, ServiceError):
        if isinstance(exc, InternalError):
            logger.error("Internal service error in %s: %s", _view_name(context), exc)
        return _error_response(exc.code, exc.message, exc.status_code)

    if isinstance(exc, DatabaseError):
        logger.exception(
            "Store failure in %s (kwargs=%s)",
            _view_name(context),
            context.get("kwargs"),
        )
        return _error_response(
            ErrorCode.INTERNAL_ERROR,
            InternalError.default_message,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        return _error_response(ErrorCode.VALIDATION_ERROR, exc.detail, status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is not None and isinstance(response.data, dict) and "code" not in response.data:
        if isinstance(exc, exceptions.NotFound):
            response.data["code"] = ErrorCode.NOT_FOUND.value
        elif isinstance(exc, exceptions.PermissionDenied):
            response.data["code"] = ErrorCode.FORBIDDEN.value
    return response


def _view_name(context) -> str:
    view = context.get("view")
    return view.__class__.__name__ if view is not None else "unknown view"
