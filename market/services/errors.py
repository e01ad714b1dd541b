# services/errors.py
from rest_framework import status


class ActionError(Exception):
    """
    Erreur métier remontée par un service. La vue la transforme en
    {"success": false, "error": message, "code": code}.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'error'

    def __init__(self, message, code=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code

    def as_payload(self):
        return {"success": False, "error": self.message, "code": self.code}


class AuthenticationRequired(ActionError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = 'authentication_required'

    def __init__(self, message="Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class NotFound(ActionError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'not_found'


class Unauthorized(ActionError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'unauthorized'

    def __init__(self, message="Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class InvalidState(ActionError):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'invalid_state'


class ValidationFailed(ActionError):
    default_code = 'validation_failed'


class AuthFlowError(ActionError):
    """Erreur d'inscription / OTP / connexion, avec un errorType pour le client."""
    default_code = 'auth_error'

    def __init__(self, message, error_type=None, **kwargs):
        super().__init__(message, **kwargs)
        self.error_type = error_type or classify_auth_error(message)

    def as_payload(self):
        payload = super().as_payload()
        payload["errorType"] = self.error_type
        return payload


def classify_auth_error(raw) -> str:
    text = str(raw or "").lower()
    if "expired" in text or "expir" in text:
        return "expired"
    if "rate" in text or "too many" in text or "wait" in text:
        return "rate_limit"
    if "invalid" in text or "incorrect" in text or "not found" in text:
        return "invalid"
    return "other"


# clés stables renvoyées au client pour la connexion / l'inscription
AUTH_ERROR_KEYS = (
    ("invalid login credentials", "errors.auth.invalid_credentials"),
    ("no active account", "errors.auth.invalid_credentials"),
    ("already registered", "errors.auth.email_already_used"),
    ("already exists", "errors.auth.email_already_used"),
    ("too many", "errors.auth.rate_limit"),
    ("rate limit", "errors.auth.rate_limit"),
    ("token is invalid or expired", "errors.auth.session_expired"),
    ("session expired", "errors.auth.session_expired"),
)


def auth_error_key(raw) -> str:
    text = str(raw or "")
    lowered = text.lower()
    for needle, key in AUTH_ERROR_KEYS:
        if needle in lowered:
            return key
    return text


def require_auth(user):
    if user is None or not getattr(user, 'is_authenticated', False):
        raise AuthenticationRequired()
    return user
