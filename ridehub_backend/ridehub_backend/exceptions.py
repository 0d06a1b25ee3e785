import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class RideHubError(APIException):
    """
    Base class for errors raised by the booking domain.
    Every subclass is a client-visible failure scoped to a single request.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'ridehub_error'


class NotFound(RideHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class Unavailable(RideHubError):
    default_detail = 'Vehicle is not available'
    default_code = 'unavailable'


class DateConflict(RideHubError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Vehicle is already booked for these dates'
    default_code = 'date_conflict'


class InvalidRequest(RideHubError):
    default_detail = 'Invalid request.'
    default_code = 'invalid_request'


class Unauthorized(RideHubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Not authorized to perform this action'
    default_code = 'unauthorized'


class AlreadyPaid(RideHubError):
    default_detail = 'Booking is already paid'
    default_code = 'already_paid'


class InvalidSignature(RideHubError):
    default_detail = 'Invalid payment signature'
    default_code = 'invalid_signature'


class InvalidState(RideHubError):
    default_detail = 'Operation not allowed in the current state.'
    default_code = 'invalid_state'


class InvalidTransition(RideHubError):
    default_detail = 'Status transition is not allowed.'
    default_code = 'invalid_transition'


class PaymentGatewayError(RideHubError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment gateway is unavailable, please try again later.'
    default_code = 'gateway_error'


def _first_message(detail):
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key in ('detail', 'non_field_errors'):
                return message
            return f"{key}: {message}"
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    return str(detail)


def ridehub_exception_handler(exc, context):
    """
    Render every failure as {success: false, message, code}.
    Anything DRF does not know about is logged and reported as an opaque 500.
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.exception("Unhandled error in %s", view.__class__.__name__ if view else 'unknown view')
        return Response(
            {'success': False, 'message': 'Internal server error', 'code': 'server_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, Http404):
        code = 'not_found'
    elif isinstance(exc, APIException):
        code = exc.default_code
    else:
        code = 'error'

    body = {'success': False, 'message': _first_message(response.data), 'code': code}
    if isinstance(exc, ValidationError):
        body['errors'] = response.data
    if response.status_code >= 500:
        logger.error("Request failed with %s: %s", response.status_code, body['message'])
    response.data = body
    return response
