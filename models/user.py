# models/user.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from db import db


class OtpPurpose(str, Enum):
    ACCOUNT_VERIFY = "account-verify"
    PASSWORD_RESET = "password-reset"


# purpose → (code column, expiry column); each purpose has its own lifecycle
OTP_COLUMNS = {
    OtpPurpose.ACCOUNT_VERIFY: ("verify_otp", "verify_otp_expire_at"),
    OtpPurpose.PASSWORD_RESET: ("reset_otp", "reset_otp_expire_at"),
}


def utcnow_naive() -> datetime:
    """Current UTC instant without tzinfo (what the DateTime columns hold)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(dt: datetime | None) -> datetime | None:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def new_user_id() -> str:
    return uuid.uuid4().hex


class User(db.Model):
    __tablename__ = "users"

    id                   = db.Column(db.String(32), primary_key=True, default=new_user_id)
    name                 = db.Column(db.String(120), nullable=False)
    email                = db.Column(db.String(254), nullable=False, unique=True, index=True)
    password_hash        = db.Column(db.String(255), nullable=False)
    is_account_verified  = db.Column(db.Boolean, nullable=False, default=False)

    # empty string == no code pending
    verify_otp           = db.Column(db.String(6), nullable=False, default="")
    verify_otp_expire_at = db.Column(db.DateTime, nullable=True)
    reset_otp            = db.Column(db.String(6), nullable=False, default="")
    reset_otp_expire_at  = db.Column(db.DateTime, nullable=True)

    created_at           = db.Column(db.DateTime, nullable=False, default=utcnow_naive)
    updated_at           = db.Column(db.DateTime, nullable=False, default=utcnow_naive, onupdate=utcnow_naive)

    @classmethod
    def new(cls, *, name: str, email: str, password_hash: str) -> "User":
        """
        Build a fully-populated, unverified record. Column defaults only fire on
        INSERT, so every field is set here for stores that never flush.
        """
        now = utcnow_naive()
        return cls(
            id=new_user_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            is_account_verified=False,
            verify_otp="",
            verify_otp_expire_at=None,
            reset_otp="",
            reset_otp_expire_at=None,
            created_at=now,
            updated_at=now,
        )

    # ── OTP state ───────────────────────────────────────────────────────────
    def pending_otp(self, purpose: OtpPurpose) -> tuple[str, datetime | None]:
        code_col, exp_col = OTP_COLUMNS[OtpPurpose(purpose)]
        return (getattr(self, code_col) or ""), getattr(self, exp_col)

    def set_otp(self, purpose: OtpPurpose, code: str, expires_at: datetime) -> None:
        code_col, exp_col = OTP_COLUMNS[OtpPurpose(purpose)]
        setattr(self, code_col, code)
        setattr(self, exp_col, _naive_utc(expires_at))

    def clear_otp(self, purpose: OtpPurpose) -> None:
        code_col, exp_col = OTP_COLUMNS[OtpPurpose(purpose)]
        setattr(self, code_col, "")
        setattr(self, exp_col, None)

    def to_public(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "isAccountVerified": bool(self.is_account_verified),
        }

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
