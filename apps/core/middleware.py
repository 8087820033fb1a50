"""
Request ID middleware.

Every request gets an X-Request-ID (accepted from the client when it is a
valid UUID, generated otherwise). The id is kept in thread-local storage so
log records and Celery tasks enqueued during the request can carry it.

Access the id in views:
    from apps.core.middleware import get_request_id

    request_id = get_request_id()  # or request.request_id
"""

import logging
import threading
import uuid

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_request_context = threading.local()


def get_request_id():
    """Current request ID, or None outside a request."""
    return getattr(_request_context, 'request_id', None)


def get_request_context():
    return {
        'request_id': getattr(_request_context, 'request_id', None),
        'user_id': getattr(_request_context, 'user_id', None),
        'path': getattr(_request_context, 'path', None),
    }


def set_request_context(request_id, user_id=None, path=None):
    _request_context.request_id = request_id
    _request_context.user_id = user_id
    _request_context.path = path


def clear_request_context():
    set_request_context(None)


class RequestIDMiddleware(MiddlewareMixin):
    """Attach a request ID to the request, the log context and the response."""

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    RESPONSE_HEADER = 'X-Request-ID'

    def process_request(self, request):
        request_id = request.META.get(self.REQUEST_ID_HEADER)
        try:
            request_id = str(uuid.UUID(request_id))
        except (ValueError, TypeError, AttributeError):
            request_id = str(uuid.uuid4())

        user = getattr(request, 'user', None)
        user_id = str(user.pk) if user is not None and user.is_authenticated else None

        set_request_context(request_id, user_id=user_id, path=request.path)
        request.request_id = request_id
        return None

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.RESPONSE_HEADER] = request_id
        clear_request_context()
        return response


class RequestIDFilter(logging.Filter):
    """Logging filter that adds request_id to log records."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True


def celery_request_id_headers():
    """
    Headers that carry the current request ID into a Celery task.

    Usage:
        task.apply_async(args=[...], headers=celery_request_id_headers())
    """
    request_id = get_request_id()
    if request_id:
        return {'request_id': request_id}
    return {}


def setup_celery_request_context(headers):
    """Restore the request ID inside a Celery task (see config.celery)."""
    set_request_context(headers.get('request_id') or str(uuid.uuid4()))
