# services/inputs.py
"""Validated request bodies, one per operation."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from services.errors import ValidationError

_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def normalize_email(raw: Any) -> str:
    return str(raw or "").strip().lower()


def _body(payload: Any) -> Mapping:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _text(data: Mapping, *keys: str) -> str:
    for k in keys:
        v = data.get(k)
        if v is not None and str(v).strip():
            return str(v)
    return ""


def _email(data: Mapping, missing_message: str) -> str:
    email = normalize_email(data.get("email"))
    if not email:
        raise ValidationError(missing_message)
    if not _EMAIL_RE.fullmatch(email):
        raise ValidationError("Invalid email address")
    return email


def _check_password(password: str, min_length: int, field: str = "Password") -> None:
    if len(password) < min_length:
        raise ValidationError(f"{field} must be at least {min_length} characters")


@dataclass(frozen=True)
class RegisterInput:
    name: str
    email: str
    password: str

    @classmethod
    def from_json(cls, payload: Any, *, min_password_length: int = 6) -> "RegisterInput":
        data = _body(payload)
        name = _text(data, "name").strip()
        password = _text(data, "password")
        if not name or not password or not normalize_email(data.get("email")):
            raise ValidationError("Missing details")
        email = _email(data, "Missing details")
        _check_password(password, min_password_length)
        return cls(name=name, email=email, password=password)


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str

    @classmethod
    def from_json(cls, payload: Any) -> "LoginInput":
        data = _body(payload)
        email = normalize_email(data.get("email"))
        password = _text(data, "password")
        if not email or not password:
            raise ValidationError("Email and password are required")
        return cls(email=email, password=password)


@dataclass(frozen=True)
class VerifyEmailInput:
    otp: str

    @classmethod
    def from_json(cls, payload: Any) -> "VerifyEmailInput":
        data = _body(payload)
        otp = _text(data, "otp", "code").strip()
        if not otp:
            raise ValidationError("Missing details")
        return cls(otp=otp)


@dataclass(frozen=True)
class ForgotPasswordInput:
    email: str

    @classmethod
    def from_json(cls, payload: Any) -> "ForgotPasswordInput":
        return cls(email=_email(_body(payload), "Email is required"))


@dataclass(frozen=True)
class ResetPasswordInput:
    email: str
    otp: str
    new_password: str

    @classmethod
    def from_json(cls, payload: Any, *, min_password_length: int = 6) -> "ResetPasswordInput":
        data = _body(payload)
        otp = _text(data, "otp", "code").strip()
        new_password = _text(data, "newPassword", "new_password")
        if not normalize_email(data.get("email")) or not otp or not new_password:
            raise ValidationError("Email, OTP, and new password are required")
        email = _email(data, "Email is required")
        _check_password(new_password, min_password_length, field="New password")
        return cls(email=email, otp=otp, new_password=new_password)
