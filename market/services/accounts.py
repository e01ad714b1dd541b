# services/accounts.py
"""
Inscription par code OTP envoyé par email, connexion JWT, déconnexion.

Le compte `users` n'existe qu'après vérification du code : en attendant,
l'email, le mot de passe haché et le rôle vivent dans SignupRequest.
"""
import logging
import re
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import update_last_login
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from market.models import SignupRequest, User, UserStats
from market.services.errors import AuthFlowError, auth_error_key

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PASSWORD_RE = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$')
SIGNUP_ROLES = ('customer', 'tasker')


def _conf(name):
    return settings.MARKETPLACE[name]


def normalize_email(email) -> str:
    return (email or '').strip().lower()


def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** 6):06d}"


def _send_code(email, code):
    from market.tasks import send_otp_email
    send_otp_email.delay(email, code, _conf('OTP_TTL_MINUTES'))


def issue_tokens(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


def _validate_signup(email, password, role):
    if not email or not password or not role:
        raise AuthFlowError("All fields are required", error_type='invalid')
    if not EMAIL_RE.match(email):
        raise AuthFlowError("Please enter a valid email address", error_type='invalid')
    if not PASSWORD_RE.match(password):
        raise AuthFlowError(
            "Password must be at least 8 characters with uppercase, lowercase, number, and special character",
            error_type='invalid',
        )
    if role not in SIGNUP_ROLES:
        raise AuthFlowError(f"Invalid role. Must be one of: {', '.join(SIGNUP_ROLES)}", error_type='invalid')


def sign_up(email, password, role) -> SignupRequest:
    email = normalize_email(email)
    _validate_signup(email, password, role)
    if User.objects.filter(email__iexact=email).exists():
        raise AuthFlowError(auth_error_key("User already registered"), error_type='other')

    now = timezone.now()
    code = generate_otp()
    pending = SignupRequest.objects.filter(email=email).first()
    if pending and now - pending.last_sent_at < timedelta(seconds=_conf('OTP_RESEND_COOLDOWN_SECONDS')):
        raise AuthFlowError(auth_error_key("Too many requests, please wait before retrying"),
                            error_type='rate_limit')

    values = dict(
        password_hash=make_password(password),
        role=role,
        code_hash=make_password(code),
        attempts=0,
        expires_at=now + timedelta(minutes=_conf('OTP_TTL_MINUTES')),
        last_sent_at=now,
    )
    pending, _ = SignupRequest.objects.update_or_create(email=email, defaults=values)
    _send_code(email, code)
    logger.info("Code de vérification envoyé à %s (rôle %s)", email, role)
    return pending


def resend_otp(email) -> SignupRequest:
    email = normalize_email(email)
    pending = SignupRequest.objects.filter(email=email).first()
    if pending is None:
        raise AuthFlowError("Invalid email: no pending signup found", error_type='invalid')

    now = timezone.now()
    wait = _conf('OTP_RESEND_COOLDOWN_SECONDS') - int((now - pending.last_sent_at).total_seconds())
    if wait > 0:
        raise AuthFlowError(f"Please wait {wait} seconds before requesting a new code", error_type='rate_limit')

    code = generate_otp()
    pending.code_hash = make_password(code)
    pending.attempts = 0
    pending.expires_at = now + timedelta(minutes=_conf('OTP_TTL_MINUTES'))
    pending.last_sent_at = now
    pending.save(update_fields=['code_hash', 'attempts', 'expires_at', 'last_sent_at'])
    _send_code(email, code)
    return pending


def _materialize_user(pending: SignupRequest) -> User:
    user = User.objects.filter(email__iexact=pending.email).first()
    if user is None:
        try:
            with transaction.atomic():
                user = User(
                    email=pending.email,
                    username=pending.email,
                    role=pending.role,
                    email_verified=True,
                    password=pending.password_hash,
                )
                user.save()
        except IntegrityError:
            # course : le compte a été créé entre-temps
            logger.warning("Compte déjà créé pour %s, réutilisation", pending.email)
            user = User.objects.get(email__iexact=pending.email)
    UserStats.objects.get_or_create(user=user)
    return user


def verify_otp(email, code):
    """Retourne (user, tokens)."""
    email = normalize_email(email)
    code = (code or '').strip()
    pending = SignupRequest.objects.filter(email=email).first()
    if pending is None:
        raise AuthFlowError("Invalid email or verification code", error_type='invalid')
    if pending.attempts >= _conf('OTP_MAX_ATTEMPTS'):
        raise AuthFlowError("Verification code expired after too many attempts, request a new one",
                            error_type='expired')
    if pending.is_expired:
        raise AuthFlowError("Verification code has expired", error_type='expired')
    if not check_password(code, pending.code_hash):
        pending.attempts += 1
        pending.save(update_fields=['attempts'])
        raise AuthFlowError("Invalid verification code", error_type='invalid')

    with transaction.atomic():
        user = _materialize_user(pending)
        pending.delete()
    logger.info("Email %s vérifié, compte %s actif", email, user.pk)
    return user, issue_tokens(user)


def login(request, email, password):
    """Retourne (user, tokens)."""
    email = normalize_email(email)
    if not email or not password:
        raise AuthFlowError("Email and password are required", error_type='invalid')
    if not EMAIL_RE.match(email):
        raise AuthFlowError("Please enter a valid email address", error_type='invalid')

    user = authenticate(request, username=email, password=password)
    if user is None:
        if SignupRequest.objects.filter(email=email).exists():
            raise AuthFlowError("Email not confirmed", error_type='other')
        raise AuthFlowError(auth_error_key("Invalid login credentials"), error_type='invalid')

    update_last_login(None, user)
    return user, issue_tokens(user)


def logout(refresh_token):
    if not refresh_token:
        raise AuthFlowError("Refresh token is required", error_type='invalid')
    try:
        RefreshToken(refresh_token).blacklist()
    except TokenError as exc:
        logger.info("Déconnexion refusée : %s", exc)
        raise AuthFlowError(auth_error_key("Token is invalid or expired"), error_type='expired')
