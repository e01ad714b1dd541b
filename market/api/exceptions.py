# market/api/exceptions.py
from rest_framework import exceptions
from rest_framework.views import exception_handler

from market.services.errors import AuthenticationRequired, Unauthorized


def first_error(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return first_error(value)
    if isinstance(detail, list) and detail:
        return first_error(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    Erreurs levées par DRF hors de service_action (authentification,
    permissions, throttling, 404 du routeur) : même enveloppe que les actions.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        response.data = AuthenticationRequired().as_payload()
    elif isinstance(exc, exceptions.PermissionDenied):
        response.data = Unauthorized().as_payload()
    elif isinstance(exc, exceptions.ValidationError):
        response.data = {"success": False, "error": first_error(exc.detail), "code": "validation_failed",
                         "details": exc.detail}
    elif isinstance(response.data, dict) and "detail" in response.data:
        detail = response.data["detail"]
        response.data = {"success": False, "error": str(detail), "code": getattr(detail, "code", None) or "error"}
    return response
