# api/exceptions.py
"""
REST framework exception handler: every error body is {success: false, message}
"""
import logging

from django.db import DatabaseError
from rest_framework.views import exception_handler as drf_exception_handler

from raktmap.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


def exception_handler(exc, context):
    if isinstance(exc, DatabaseError):
        logger.error(f"Database error in {context.get('view').__class__.__name__}: {exc}")
        exc = StoreUnavailable()

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        response.data = {'success': False, 'message': str(data['detail'])}
    else:
        # Field-level validation errors
        response.data = {'success': False, 'message': 'Invalid request data', 'errors': data}
    return response
