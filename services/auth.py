# services/auth.py
"""
Auth workflows composed from the store, hasher, OTP engine, token issuer and
notifier.

Public API:
  - register(RegisterInput)            -> AuthResult
  - login(LoginInput)                  -> AuthResult
  - logout()                           -> message
  - authenticate(token)                -> user id
  - get_user_data(user_id)             -> {name, email, isAccountVerified}
  - send_verify_otp(user_id)           -> message
  - verify_email(user_id, VerifyEmailInput)  -> message
  - send_reset_otp(ForgotPasswordInput)      -> message
  - reset_password(ResetPasswordInput)       -> message

Failures raise ``services.errors.AuthError`` subclasses. Emails are best effort:
a failed send is logged and never fails the operation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.user import OtpPurpose, User
from services import notifier as messages
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
    normalize_email,
)
from services.notifier import Notifier
from services.otp import OtpEngine, OtpStatus
from services.passwords import PasswordHasher
from services.tokens import TokenIssuer
from services.user_store import UserStore
from utils.mail import mask_email

log = logging.getLogger("auth")

_DUMMY_PASSWORD = "not-a-real-password"


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str
    message: str = ""


class AuthService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        otp: OtpEngine,
        tokens: TokenIssuer,
        notifier: Notifier,
        *,
        app_name: str = "Auth Service",
    ):
        self.store = store
        self.hasher = hasher
        self.otp = otp
        self.tokens = tokens
        self.notifier = notifier
        self.app_name = app_name
        # burned on unknown-email logins so both failure paths cost one hash check
        self._dummy_hash = hasher.hash(_DUMMY_PASSWORD)

    # ── Sessions ────────────────────────────────────────────────────────────
    def register(self, data: RegisterInput) -> AuthResult:
        email = normalize_email(data.email)
        if self.store.find_by_email(email) is not None:
            raise Conflict()

        user = self.store.create(
            name=data.name.strip(),
            email=email,
            password_hash=self.hasher.hash(data.password),
        )
        token = self.tokens.issue(user.id)
        log.info("[auth] registered uid=%s email=%s", user.id, mask_email(email))

        subject, text, html = messages.welcome_message(self.app_name, email)
        self._notify(email, subject, text, html, what="welcome")
        return AuthResult(user=user, token=token, message="Registration successful")

    def login(self, data: LoginInput) -> AuthResult:
        email = normalize_email(data.email)
        user = self.store.find_by_email(email)
        if user is None:
            self.hasher.verify(data.password, self._dummy_hash)
            log.info("[auth] login failed (unknown) email=%s", mask_email(email))
            raise InvalidCredentials()
        if not self.hasher.verify(data.password, user.password_hash):
            log.info("[auth] login failed (password) uid=%s", user.id)
            raise InvalidCredentials()

        token = self.tokens.issue(user.id)
        log.info("[auth] login uid=%s", user.id)
        return AuthResult(user=user, token=token, message="Login successful")

    def logout(self) -> str:
        # tokens stay valid until they expire; the transport drops the cookie
        return "Logged out"

    def authenticate(self, token: Optional[str]) -> str:
        if not token:
            raise Unauthorized()
        user_id = self.tokens.verify(token)
        if user_id is None or self.store.find_by_id(user_id) is None:
            raise InvalidToken()
        return user_id

    def get_user_data(self, user_id: str) -> dict:
        return self._user(user_id).to_public()

    # ── Account verification ────────────────────────────────────────────────
    def send_verify_otp(self, user_id: str) -> str:
        user = self._user(user_id)
        if user.is_account_verified:
            raise AlreadyVerified()

        code = self.otp.issue(user, OtpPurpose.ACCOUNT_VERIFY)
        minutes = self._ttl_minutes(OtpPurpose.ACCOUNT_VERIFY)
        subject, text, html = messages.verify_otp_message(code, minutes)
        self._notify(user.email, subject, text, html, what="verify-otp")
        return "Verification OTP sent to email"

    def verify_email(self, user_id: str, data: VerifyEmailInput) -> str:
        user = self._user(user_id)
        self._check_otp(user, OtpPurpose.ACCOUNT_VERIFY, data.otp)

        user.is_account_verified = True
        self.store.save(user)
        log.info("[auth] account verified uid=%s", user.id)
        return "Email verified successfully"

    # ── Password reset ──────────────────────────────────────────────────────
    def send_reset_otp(self, data: ForgotPasswordInput) -> str:
        email = normalize_email(data.email)
        user = self.store.find_by_email(email)
        if user is None:
            raise NotFound()

        code = self.otp.issue(user, OtpPurpose.PASSWORD_RESET)
        minutes = self._ttl_minutes(OtpPurpose.PASSWORD_RESET)
        subject, text, html = messages.reset_otp_message(code, minutes)
        self._notify(user.email, subject, text, html, what="reset-otp")
        return "OTP sent to your email"

    def reset_password(self, data: ResetPasswordInput) -> str:
        email = normalize_email(data.email)
        user = self.store.find_by_email(email)
        if user is None:
            raise NotFound()

        self._check_otp(user, OtpPurpose.PASSWORD_RESET, data.otp)

        user.password_hash = self.hasher.hash(data.new_password)
        self.store.save(user)
        log.info("[auth] password reset uid=%s", user.id)
        return "Password has been reset successfully"

    # ── helpers ─────────────────────────────────────────────────────────────
    def _user(self, user_id: str) -> User:
        user = self.store.find_by_id(user_id) if user_id else None
        if user is None:
            raise NotFound()
        return user

    def _check_otp(self, user: User, purpose: OtpPurpose, submitted: str) -> None:
        status = self.otp.verify(user, purpose, submitted)
        if status is OtpStatus.OK:
            return
        if status is OtpStatus.EXPIRED:
            raise ExpiredOtp()
        if status is OtpStatus.MISMATCH:
            raise InvalidOtp()
        raise NotFound("No pending OTP. Please request a new one.")

    def _ttl_minutes(self, purpose: OtpPurpose) -> int:
        return int(self.otp.ttl_for(purpose).total_seconds() // 60)


    def _notify(self, to: str, subject: str, text: str, html: str, *, what: str) -> bool:
        try:
            ok = bool(self.notifier.send(to, subject, text, html))
        except Exception:
            log.exception("[auth] %s email to %s raised", what, mask_email(to))
            return False
        if not ok:
            log.warning("[auth] %s email to %s was not delivered", what, mask_email(to))
        return ok
