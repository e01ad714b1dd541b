import re
from datetime import timedelta

import pytest
from django.core import mail
from django.utils import timezone

from market.models import SignupRequest, User, UserStats
from market.services import accounts
from market.services.errors import AuthFlowError, auth_error_key, classify_auth_error

pytestmark = pytest.mark.django_db

PASSWORD = "Secret12!"


def _last_code():
    return re.search(r"\b(\d{6})\b", mail.outbox[-1].body).group(1)


@pytest.mark.parametrize("raw, expected", [
    ("Verification code has expired", "expired"),
    ("Please wait 30 seconds before requesting a new code", "rate_limit"),
    ("Too many requests", "rate_limit"),
    ("Invalid verification code", "invalid"),
    ("Email not confirmed", "other"),
])
def test_classify_auth_error(raw, expected):
    assert classify_auth_error(raw) == expected


def test_auth_error_keys():
    assert auth_error_key("Invalid login credentials") == "errors.auth.invalid_credentials"
    assert auth_error_key("User already registered") == "errors.auth.email_already_used"
    assert auth_error_key("Something else") == "Something else"


def test_signup_sends_code_and_defers_account():
    pending = accounts.sign_up("  New.User@Example.com ", PASSWORD, "tasker")

    assert pending.email == "new.user@example.com"
    assert not User.objects.filter(email="new.user@example.com").exists()
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["new.user@example.com"]
    assert len(_last_code()) == 6
    # seul le hash du code est stocké
    assert _last_code() not in pending.code_hash


@pytest.mark.parametrize("email, password, role", [
    ("", PASSWORD, "customer"),
    ("not-an-email", PASSWORD, "customer"),
    ("a@b.co", "weakpass", "customer"),
    ("a@b.co", PASSWORD, "admin"),
])
def test_signup_validation(email, password, role):
    with pytest.raises(AuthFlowError) as exc:
        accounts.sign_up(email, password, role)
    assert exc.value.error_type == "invalid"


def test_signup_existing_email(customer):
    with pytest.raises(AuthFlowError) as exc:
        accounts.sign_up(customer.email, PASSWORD, "customer")
    assert exc.value.message == "errors.auth.email_already_used"


def test_signup_again_inside_cooldown():
    accounts.sign_up("someone@example.com", PASSWORD, "customer")
    with pytest.raises(AuthFlowError) as exc:
        accounts.sign_up("someone@example.com", PASSWORD, "customer")
    assert exc.value.error_type == "rate_limit"


def test_verify_materializes_user_with_role():
    accounts.sign_up("someone@example.com", PASSWORD, "tasker")

    user, tokens = accounts.verify_otp("someone@example.com", _last_code())

    assert user.role == "tasker"
    assert user.email_verified is True
    assert user.check_password(PASSWORD)
    assert UserStats.objects.filter(user=user).exists()
    assert set(tokens) == {"access", "refresh"}
    assert not SignupRequest.objects.filter(email="someone@example.com").exists()


def test_verify_reuses_existing_account():
    accounts.sign_up("race@example.com", PASSWORD, "customer")
    code = _last_code()
    existing = User.objects.create_user(username="race", email="race@example.com", password=PASSWORD)

    user, _ = accounts.verify_otp("race@example.com", code)

    assert user.pk == existing.pk
    assert User.objects.filter(email="race@example.com").count() == 1


def test_wrong_code_counts_attempts_then_expires(settings):
    accounts.sign_up("someone@example.com", PASSWORD, "customer")
    code = _last_code()
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(settings.MARKETPLACE['OTP_MAX_ATTEMPTS']):
        with pytest.raises(AuthFlowError) as exc:
            accounts.verify_otp("someone@example.com", wrong)
        assert exc.value.error_type == "invalid"

    with pytest.raises(AuthFlowError) as exc:
        accounts.verify_otp("someone@example.com", code)
    assert exc.value.error_type == "expired"


def test_expired_code():
    accounts.sign_up("someone@example.com", PASSWORD, "customer")
    SignupRequest.objects.filter(email="someone@example.com").update(
        expires_at=timezone.now() - timedelta(seconds=1))

    with pytest.raises(AuthFlowError) as exc:
        accounts.verify_otp("someone@example.com", _last_code())
    assert exc.value.error_type == "expired"


def test_unknown_email_is_invalid():
    with pytest.raises(AuthFlowError) as exc:
        accounts.verify_otp("nobody@example.com", "123456")
    assert exc.value.error_type == "invalid"


def test_resend_respects_cooldown():
    accounts.sign_up("someone@example.com", PASSWORD, "customer")

    with pytest.raises(AuthFlowError) as exc:
        accounts.resend_otp("someone@example.com")
    assert exc.value.error_type == "rate_limit"

    SignupRequest.objects.filter(email="someone@example.com").update(
        last_sent_at=timezone.now() - timedelta(minutes=5), attempts=3)
    pending = accounts.resend_otp("someone@example.com")

    assert pending.attempts == 0
    assert len(mail.outbox) == 2
    assert pending.expires_at > timezone.now()
    user, _ = accounts.verify_otp("someone@example.com", _last_code())
    assert user.email == "someone@example.com"


# ---- API ----

def test_api_signup_verify_login_logout(api_client):
    resp = api_client.post("/api/auth/signup/", {"email": "flow@example.com", "password": PASSWORD,
                                                 "role": "customer"}, format="json")
    assert resp.status_code == 201
    assert resp.data["email"] == "flow@example.com"

    resp = api_client.post("/api/auth/verify-otp/", {"email": "flow@example.com", "code": _last_code()},
                           format="json")
    assert resp.status_code == 200
    assert resp.data["user"]["email"] == "flow@example.com"

    resp = api_client.post("/api/auth/login/", {"email": "FLOW@example.com", "password": PASSWORD}, format="json")
    assert resp.status_code == 200
    access, refresh = resp.data["access"], resp.data["refresh"]
    assert User.objects.get(email="flow@example.com").last_login is not None

    me = api_client.get("/api/auth/me/", HTTP_AUTHORIZATION=f"Bearer {access}")
    assert me.status_code == 200
    assert me.data["user"]["role"] == "customer"
    assert me.data["tasker_profile"] is None

    out = api_client.post("/api/auth/logout/", {"refresh": refresh}, format="json")
    assert out.status_code == 200

    again = api_client.post("/api/auth/logout/", {"refresh": refresh}, format="json")
    assert again.status_code == 400
    assert again.data["error"] == "errors.auth.session_expired"
    assert again.data["errorType"] == "expired"


def test_api_login_bad_credentials(api_client, customer):
    resp = api_client.post("/api/auth/login/", {"email": customer.email, "password": "Wrong123!"}, format="json")

    assert resp.status_code == 400
    assert resp.data == {
        "success": False,
        "error": "errors.auth.invalid_credentials",
        "code": "auth_error",
        "errorType": "invalid",
    }


def test_api_login_before_verification(api_client):
    accounts.sign_up("pending@example.com", PASSWORD, "customer")

    resp = api_client.post("/api/auth/login/", {"email": "pending@example.com", "password": PASSWORD},
                           format="json")

    assert resp.data["error"] == "Email not confirmed"
    assert resp.data["errorType"] == "other"


def test_api_refresh_rotates_tokens(api_client, customer):
    tokens = accounts.issue_tokens(customer)

    resp = api_client.post("/api/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")

    assert resp.status_code == 200
    assert "access" in resp.data
