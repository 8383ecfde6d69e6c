"""
Errors raised by the dispatch services and the API exception handler.

Every error reaches the client as ``{"error": <message>}`` plus an optional
``details`` payload with per-field validation messages.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidRange(exceptions.ValidationError):
    default_detail = 'End marker must be greater than start marker'
    default_code = 'invalid_range'

    def __init__(self, detail=None, code=None):
        super().__init__({'end_marker': [detail or self.default_detail]}, code)
        self.message = detail or self.default_detail


class InsufficientFuel(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Not enough fuel remaining for this discharge'
    default_code = 'insufficient_fuel'


class ConflictOnDelete(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cannot delete a record that still has dependent records'
    default_code = 'conflict_on_delete'


class AssignmentConflict(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The assignment cannot be changed in its current state'
    default_code = 'assignment_conflict'


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid state transition'
    default_code = 'invalid_transition'


class TransactionFailure(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The operation could not be saved. No changes were made.'
    default_code = 'transaction_failure'


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF exception handler rendering every error as ``{"error": ...}``.

    Persistence errors that escape a view are reported as TransactionFailure;
    the enclosing ``transaction.atomic`` block has already rolled back.
    """
    if isinstance(exc, DatabaseError):
        view = context.get('view')
        logger.exception("Persistence failure in %s: %s", view.__class__.__name__ if view else 'view', exc)
        exc = TransactionFailure()
    elif isinstance(exc, ObjectDoesNotExist):
        exc = exceptions.NotFound(str(exc) or 'Not found.')
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound()

    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(exc, exceptions.ValidationError):
        message = getattr(exc, 'message', None)
        if message is None:
            if isinstance(detail, dict) and 'non_field_errors' in detail:
                message = _first_message(detail['non_field_errors'])
            elif isinstance(detail, dict) and len(detail) == 1:
                message = _first_message(detail)
            elif isinstance(detail, list):
                message = _first_message(detail)
            else:
                message = 'Invalid data'
        payload = {'error': message, 'details': detail}
    elif isinstance(detail, dict) and 'detail' in detail:
        payload = {'error': str(detail['detail'])}
    else:
        payload = {'error': _first_message(detail)}

    return Response(payload, status=response.status_code, headers=_auth_headers(response))


def _auth_headers(response):
    headers = {}
    for name in ('WWW-Authenticate', 'Retry-After'):
        if response.has_header(name):
            headers[name] = response[name]
    return headers
