"""AuthService workflows against the in-memory store."""
from unittest import mock

import pytest

from models.user import OtpPurpose
from services.errors import (
    AlreadyVerified,
    Conflict,
    ExpiredOtp,
    InvalidCredentials,
    InvalidOtp,
    InvalidToken,
    NotFound,
    Unauthorized,
)
from services.inputs import (
    ForgotPasswordInput,
    LoginInput,
    RegisterInput,
    ResetPasswordInput,
    VerifyEmailInput,
)
from tests.conftest import RecordingNotifier


def _register(service, email="ada@example.com", password="secret1", name="Ada"):
    return service.register(RegisterInput(name=name, email=email, password=password))


def test_register_creates_user_and_session(service, store, notifier):
    result = _register(service)

    assert result.message == "Registration successful"
    assert service.tokens.verify(result.token) == result.user.id
    assert store.find_by_email("ada@example.com") is result.user
    assert result.user.password_hash != "secret1"
    assert not result.user.is_account_verified
    assert notifier.sent[0]["to"] == "ada@example.com"
    assert notifier.sent[0]["subject"].startswith("Welcome to")


def test_register_normalizes_email(service, store):
    _register(service, email="  Ada@Example.COM ")
    assert store.find_by_email("ada@example.com") is not None


def test_register_duplicate_email_conflicts(service):
    _register(service)
    with pytest.raises(Conflict) as exc:
        _register(service, email="ADA@example.com")
    assert exc.value.message == "User already exists"


@pytest.mark.parametrize("notifier", [RecordingNotifier(ok=False), RecordingNotifier(raises=RuntimeError("smtp down"))])
def test_register_succeeds_when_mail_fails(service, notifier):
    result = _register(service)
    assert result.token
    assert len(notifier.sent) == 1


def test_login_returns_token_for_user(service):
    user = _register(service).user
    result = service.login(LoginInput(email="ADA@example.com", password="secret1"))
    assert result.message == "Login successful"
    assert service.tokens.verify(result.token) == user.id


def test_login_failures_are_indistinguishable(service):
    _register(service)
    with pytest.raises(InvalidCredentials) as wrong_password:
        service.login(LoginInput(email="ada@example.com", password="nope123"))
    with pytest.raises(InvalidCredentials) as unknown_email:
        service.login(LoginInput(email="bob@example.com", password="secret1"))
    assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"


def test_logout_message(service):
    assert service.logout() == "Logged out"


def test_authenticate(service):
    result = _register(service)
    assert service.authenticate(result.token) == result.user.id

    with pytest.raises(Unauthorized):
        service.authenticate(None)
    with pytest.raises(Unauthorized):
        service.authenticate("")
    with pytest.raises(InvalidToken):
        service.authenticate("not-a-jwt")


def test_authenticate_rejects_token_for_missing_user(service):
    token = service.tokens.issue("0" * 32)
    with pytest.raises(InvalidToken):
        service.authenticate(token)


def test_get_user_data(service):
    user = _register(service).user
    assert service.get_user_data(user.id) == {
        "name": "Ada",
        "email": "ada@example.com",
        "isAccountVerified": False,
    }
    with pytest.raises(NotFound):
        service.get_user_data("missing")


# ── account verification ───────────────────────────────────────────────────
def test_verify_flow(service, notifier):
    user = _register(service).user

    assert service.send_verify_otp(user.id) == "Verification OTP sent to email"
    mail = notifier.sent[-1]
    assert mail["subject"] == "Account Verification OTP"
    assert "24 hours" in mail["text"]

    code = notifier.last_code()
    assert service.verify_email(user.id, VerifyEmailInput(otp=code)) == "Email verified successfully"
    assert user.is_account_verified
    assert user.pending_otp(OtpPurpose.ACCOUNT_VERIFY) == ("", None)

    with pytest.raises(AlreadyVerified):
        service.send_verify_otp(user.id)


def test_send_verify_otp_unknown_user(service):
    with pytest.raises(NotFound):
        service.send_verify_otp("missing")


def test_verify_wrong_code_keeps_code_pending(service, notifier):
    user = _register(service).user
    service.send_verify_otp(user.id)
    code = notifier.last_code()
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidOtp):
        service.verify_email(user.id, VerifyEmailInput(otp=wrong))
    assert not user.is_account_verified

    service.verify_email(user.id, VerifyEmailInput(otp=code))
    assert user.is_account_verified


def test_verify_expired_code(service, notifier, clock):
    service.otp.clock = clock
    user = _register(service).user
    service.send_verify_otp(user.id)
    code = notifier.last_code()

    clock.advance(hours=24, seconds=1)
    with pytest.raises(ExpiredOtp):
        service.verify_email(user.id, VerifyEmailInput(otp=code))
    with pytest.raises(NotFound):
        service.verify_email(user.id, VerifyEmailInput(otp=code))
    assert not user.is_account_verified


def test_verify_without_pending_code(service):
    user = _register(service).user
    with pytest.raises(NotFound) as exc:
        service.verify_email(user.id, VerifyEmailInput(otp="123456"))
    assert "request a new one" in exc.value.message


def test_resend_replaces_previous_code(service, notifier):
    codes = iter(["111111", "222222"])
    service.otp.code_factory = lambda: next(codes)
    user = _register(service).user

    service.send_verify_otp(user.id)
    service.send_verify_otp(user.id)

    with pytest.raises(InvalidOtp):
        service.verify_email(user.id, VerifyEmailInput(otp="111111"))
    service.verify_email(user.id, VerifyEmailInput(otp="222222"))
    assert user.is_account_verified


# ── password reset ─────────────────────────────────────────────────────────
def test_reset_flow(service, notifier):
    _register(service)

    assert service.send_reset_otp(ForgotPasswordInput(email="ada@example.com")) == "OTP sent to your email"
    mail = notifier.sent[-1]
    assert mail["subject"] == "Password Reset OTP"
    assert "10 minutes" in mail["text"]
    code = notifier.last_code()

    msg = service.reset_password(ResetPasswordInput(email="ada@example.com", otp=code, new_password="brandnew"))
    assert msg == "Password has been reset successfully"

    with pytest.raises(InvalidCredentials):
        service.login(LoginInput(email="ada@example.com", password="secret1"))
    assert service.login(LoginInput(email="ada@example.com", password="brandnew")).token

    with pytest.raises(NotFound):
        service.reset_password(ResetPasswordInput(email="ada@example.com", otp=code, new_password="another1"))


def test_reset_unknown_email(service):
    with pytest.raises(NotFound):
        service.send_reset_otp(ForgotPasswordInput(email="ghost@example.com"))
    with pytest.raises(NotFound):
        service.reset_password(ResetPasswordInput(email="ghost@example.com", otp="123456", new_password="whatever"))


def test_reset_expired_code_leaves_password(service, notifier, clock):
    service.otp.clock = clock
    _register(service)
    service.send_reset_otp(ForgotPasswordInput(email="ada@example.com"))
    code = notifier.last_code()

    clock.advance(minutes=11)
    with pytest.raises(ExpiredOtp):
        service.reset_password(ResetPasswordInput(email="ada@example.com", otp=code, new_password="brandnew"))
    assert service.login(LoginInput(email="ada@example.com", password="secret1")).token


def test_reset_code_does_not_verify_account(service, notifier):
    user = _register(service).user
    service.send_reset_otp(ForgotPasswordInput(email="ada@example.com"))
    code = notifier.last_code()

    with pytest.raises(NotFound):
        service.verify_email(user.id, VerifyEmailInput(otp=code))
    assert user.pending_otp(OtpPurpose.PASSWORD_RESET)[0] == code


def test_unknown_email_login_costs_one_verify_and_no_hash(service):
    with mock.patch.object(service.hasher, "hash") as hash_, \
            mock.patch.object(service.hasher, "verify", return_value=False) as verify:
        for _ in range(2):
            with pytest.raises(InvalidCredentials):
                service.login(LoginInput(email="ghost@example.com", password="secret1"))
    hash_.assert_not_called()
    assert verify.call_count == 2
    assert verify.call_args[0][1] == service._dummy_hash
