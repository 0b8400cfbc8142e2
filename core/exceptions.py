"""
Coded API errors and the REST framework exception handler.

Every failure leaves the API in the same envelope:

    {"success": false, "error": {"message": "...", "code": "..."}}
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class APIError(exceptions.APIException):
    """
    Base class for domain errors carrying a machine readable code.

    Args:
        message: Human readable message
        code: Machine readable error code
        details: Optional extra payload for the client
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'BAD_REQUEST'

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_detail
        self.code = code or self.default_code
        self.details = details
        super().__init__(detail=self.message, code=self.code)


class BadRequestError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'VALIDATION_ERROR'


class NotAuthorizedError(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not authorized to perform this action.'
    default_code = 'NOT_AUTHORIZED'


class ResourceNotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'NOT_FOUND'


class ConflictError(APIError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with the current state.'
    default_code = 'CONFLICT'


def error_response(message, code, status_code, details=None):
    error = {'message': message, 'code': code}
    if details is not None:
        error['details'] = details
    return Response({'success': False, 'error': error}, status=status_code)


def _code_for(exc):
    if isinstance(exc, exceptions.NotAuthenticated):
        return 'NO_TOKEN'
    if isinstance(exc, exceptions.AuthenticationFailed):
        return 'INVALID_TOKEN'
    if isinstance(exc, exceptions.PermissionDenied):
        return 'NOT_AUTHORIZED'
    if isinstance(exc, exceptions.NotFound):
        return 'NOT_FOUND'
    if isinstance(exc, exceptions.ParseError):
        return 'INVALID_JSON'
    if isinstance(exc, exceptions.ValidationError):
        return 'VALIDATION_ERROR'
    if isinstance(exc, exceptions.MethodNotAllowed):
        return 'METHOD_NOT_ALLOWED'
    if isinstance(exc, exceptions.Throttled):
        return 'RATE_LIMITED'
    return 'ERROR'


def _message_for(exc, response):
    if isinstance(exc, exceptions.ValidationError):
        return 'Validation failed.'
    detail = response.data.get('detail') if isinstance(response.data, dict) else None
    if detail is not None:
        return str(detail)
    return str(exc)


def custom_exception_handler(exc, context):
    """
    Render any exception raised by a view into the error envelope.

    Domain errors keep their own code. REST framework errors are mapped onto
    codes. Anything else is logged with its traceback and reported as a
    generic 500 without internal detail.
    """
    if isinstance(exc, APIError):
        return error_response(exc.message, exc.code, exc.status_code, exc.details)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
            exc_info=(type(exc), exc, exc.__traceback__)
        )
        return error_response(
            'An unexpected error occurred.',
            'INTERNAL_ERROR',
            status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, (Http404, DjangoPermissionDenied)):
        code = 'NOT_FOUND' if isinstance(exc, Http404) else 'NOT_AUTHORIZED'
    else:
        code = _code_for(exc)

    details = None
    if isinstance(exc, exceptions.ValidationError):
        details = response.data

    error_body = error_response(_message_for(exc, response), code, response.status_code, details)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in response:
            error_body[header] = response[header]
    return error_body
