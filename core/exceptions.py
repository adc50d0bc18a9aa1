import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = 'Erro interno do servidor'


def first_message(detail) -> str:
    """Flatten DRF error detail (dict / list / string) to its first message."""
    if isinstance(detail, dict):
        for value in detail.values():
            return first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    request = context.get('request')
    where = f"{request.method} {request.path}" if request is not None else 'unknown view'

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error('Unhandled error in %s: %s', where, exc, exc_info=exc)
        set_rollback()
        return Response({'error': str(exc) or FALLBACK_MESSAGE}, status=500)
    # normalize response, keeping headers such as Allow
    logger.warning('API error in %s (%s): %s', where, resp.status_code, exc)
    resp.data = {'error': first_message(resp.data) or FALLBACK_MESSAGE}
    return resp
