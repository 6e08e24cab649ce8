"""DRF exception handler rendering errors as ``{'error': message}``"""
import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import ServiceError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Render service errors and DRF 'detail' errors as {'error': ...}"""
    if isinstance(exc, ServiceError):
        request = context.get('request')
        path = request.path if request is not None else ''
        logger.info(f"{exc.__class__.__name__} on {path}: {exc.message}")
        return Response({'error': exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None and isinstance(response.data, dict) and set(response.data.keys()) == {'detail'}:
        response.data = {'error': str(response.data['detail'])}
    return response
