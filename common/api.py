import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_http_methods

from users.actor import Actor
from .exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


def api_view(methods):
    """
    Wrap a JSON endpoint.

    Rejects anonymous users, answers unsupported methods with 405, hands
    the view an explicit Actor instead of request.user and turns domain
    errors into structured JSON responses.
    """
    def decorator(view):
        view_for_methods = require_http_methods([m.upper() for m in methods])(view)

        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({
                    'status': 'error',
                    'kind': 'not_authenticated',
                    'message': 'Authentication required.'
                }, status=401)

            actor = Actor.from_user(request.user)
            try:
                return view_for_methods(request, actor, *args, **kwargs)
            except DomainError as e:
                logger.info("%s %s rejected for user %s: %s", request.method, request.path, actor.id, e.kind)
                return JsonResponse(e.as_dict(), status=e.status_code)
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.path)
                return JsonResponse({
                    'status': 'error',
                    'kind': 'server_error',
                    'message': 'Server error.'
                }, status=500)
        return wrapper
    return decorator


def json_body(request):
    """Decode a JSON object body; an empty body is an empty dict."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Request body must be valid JSON.')
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.')
    return data


def date_param(value, field='date', required=False):
    if not value:
        if required:
            raise ValidationError(f'{field} is required.', errors={field: ['This field is required.']})
        return None
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f'{field} must be a YYYY-MM-DD date.', errors={field: ['Enter a valid date.']})
    return parsed


def iso(value):
    return value.isoformat() if value else None


def hhmm(value):
    return value.strftime('%H:%M') if value else None
