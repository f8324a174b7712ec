"""Small helpers shared by the JSON API views.

Every API view is wrapped by `api_view`, which resolves the caller's Entity
and maps errors to HTTP responses:

- django ValidationError -> 400 with field details
- BusinessError          -> its status_code (400, NotFound 404)
- Http404                -> 404
- ProtectedError         -> 400 (row still referenced)
- anything else          -> 500, logged
"""

import json
import logging
from functools import wraps

from django.core.exceptions import ValidationError
from django.core.paginator import EmptyPage, Paginator
from django.core.serializers.json import DjangoJSONEncoder
from django.db.models import ProtectedError
from django.http import Http404, JsonResponse

from core.exceptions import BusinessError

logger = logging.getLogger(__name__)


def get_entity(request):
    try:
        return request.user.profile.entity
    except AttributeError:
        # No profile (RelatedObjectDoesNotExist is an AttributeError) or anonymous user.
        return None


def operator_name(request) -> str:
    """Only valid inside api_view, which guarantees the profile."""
    return request.user.profile.display_name


def json_response(data, status=200):
    return JsonResponse(data, status=status, encoder=DjangoJSONEncoder, safe=False)


def read_json(request) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body is not valid JSON.")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def validate(form):
    """Return cleaned_data or raise ValidationError with the form's errors."""
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    return form.cleaned_data


def paginate(request, queryset, default_limit=10):
    """Return (page_items, pagination dict) driven by ?page=&limit=."""
    try:
        page_no = max(int(request.GET.get("page") or 1), 1)
        limit = max(int(request.GET.get("limit") or default_limit), 1)
    except ValueError:
        raise ValidationError("page and limit must be integers.")

    paginator = Paginator(queryset, limit)
    try:
        page = paginator.page(page_no)
        items = list(page.object_list)
    except EmptyPage:
        items = []

    return items, {
        "page": page_no,
        "limit": limit,
        "total": paginator.count,
        "total_pages": paginator.num_pages if paginator.count else 0,
    }


def _validation_details(exc):
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return exc.messages


def api_view(view):
    """Resolve request.user's Entity and translate errors to JSON responses."""

    @wraps(view)
    def wrapped(request, *args, **kwargs):
        entity = get_entity(request)
        if entity is None:
            return JsonResponse({"error": "Company not found for this user."}, status=400)

        try:
            return view(request, entity, *args, **kwargs)
        except ValidationError as e:
            return json_response({"error": "Validation error", "details": _validation_details(e)}, status=400)
        except BusinessError as e:
            return json_response({"error": e.message}, status=e.status_code)
        except Http404 as e:
            return json_response({"error": str(e) or "Not found"}, status=404)
        except ProtectedError:
            return json_response({"error": "Object is still referenced and cannot be deleted."}, status=400)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return json_response({"error": "Internal server error"}, status=500)

    return wrapped
