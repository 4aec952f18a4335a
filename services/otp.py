# services/otp.py
"""
One-time codes for account verification and password reset.

Codes live inline on the user record, one pending code per purpose. Issuing a
new code overwrites the previous one. Verification order:

  NOT_FOUND  no code pending (an empty stored code counts as none)
  EXPIRED    now > expires_at; the stale code is cleared as a side effect
  MISMATCH   wrong code; the code stays pending until it expires
  OK         code consumed through the store's compare-and-set, so a replay
             (or a concurrent duplicate) sees NOT_FOUND
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from models.user import OtpPurpose, User
from services.user_store import UserStore

log = logging.getLogger("otp")

OTP_LENGTH = 6
_OTP_MIN = 100_000
_OTP_SPAN = 900_000


class OtpStatus(Enum):
    OK = "ok"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    NOT_FOUND = "not_found"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # treat naive datetimes (as read back from the DB) as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def generate_otp_code() -> str:
    return f"{_OTP_MIN + secrets.randbelow(_OTP_SPAN):0{OTP_LENGTH}d}"


class OtpEngine:
    def __init__(
        self,
        store: UserStore,
        ttls: Dict[OtpPurpose, timedelta],
        *,
        clock: Callable[[], datetime] = _now_utc,
        code_factory: Callable[[], str] = generate_otp_code,
    ):
        self.store = store
        self.ttls = {OtpPurpose(k): v for k, v in ttls.items()}
        self.clock = clock
        self.code_factory = code_factory

    def ttl_for(self, purpose: OtpPurpose) -> timedelta:
        return self.ttls[OtpPurpose(purpose)]

    def issue(self, user: User, purpose: OtpPurpose, ttl: Optional[timedelta] = None) -> str:
        purpose = OtpPurpose(purpose)
        code = str(self.code_factory())
        expires_at = self.clock() + (ttl if ttl is not None else self.ttl_for(purpose))
        user.set_otp(purpose, code, expires_at)
        self.store.save(user)
        log.info("[otp] issued purpose=%s uid=%s expires_at=%s", purpose.value, user.id, expires_at.isoformat())
        return code

    def verify(self, user: User, purpose: OtpPurpose, submitted: str) -> OtpStatus:
        purpose = OtpPurpose(purpose)
        stored, expires_at = user.pending_otp(purpose)
        if not stored:
            return OtpStatus.NOT_FOUND

        if expires_at is None or self.clock() > _as_utc(expires_at):
            # only wipe this exact code; a newer one may have been issued meanwhile
            if self.store.clear_otp_if(user.id, purpose, stored):
                user.clear_otp(purpose)
            log.info("[otp] expired purpose=%s uid=%s", purpose.value, user.id)
            return OtpStatus.EXPIRED

        if not secrets.compare_digest(stored.encode("utf-8"), str(submitted or "").encode("utf-8")):
            log.info("[otp] mismatch purpose=%s uid=%s", purpose.value, user.id)
            return OtpStatus.MISMATCH

        if not self.store.clear_otp_if(user.id, purpose, stored):
            # another request consumed (or replaced) it first
            log.info("[otp] lost consume race purpose=%s uid=%s", purpose.value, user.id)
            return OtpStatus.NOT_FOUND

        user.clear_otp(purpose)
        log.info("[otp] verified purpose=%s uid=%s", purpose.value, user.id)
        return OtpStatus.OK
