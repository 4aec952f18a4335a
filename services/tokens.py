# services/tokens.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Optional

import jwt

log = logging.getLogger("auth")

ALGORITHM = "HS256"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """HS256 session tokens carrying sub (user id), iat and exp."""

    def __init__(self, secret: str, ttl: timedelta, *, clock: Callable[[], datetime] = _now_utc):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.ttl = ttl
        self.clock = clock

    def issue(self, user_id: str) -> str:
        iat = self.clock()
        payload = {
            "sub": str(user_id),
            "iat": iat,
            "exp": iat + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> Optional[str]:
        """Return the subject of a valid token, None for anything else."""
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            log.info("[auth] token expired")
            return None
        except jwt.InvalidTokenError as e:
            log.info("[auth] token rejected: %s", e)
            return None

        sub = payload.get("sub")
        return sub if isinstance(sub, str) and sub else None


# ── Cookie transport ────────────────────────────────────────────────────────
def _cookie_policy(config: Mapping) -> dict:
    return {
        "httponly": True,
        "secure": bool(config.get("COOKIE_SECURE", False)),
        "samesite": config.get("COOKIE_SAMESITE", "Strict"),
        "path": "/",
    }


def set_session_cookie(response, token: str, config: Mapping) -> None:
    max_age = int(timedelta(days=int(config.get("SESSION_TTL_DAYS", 7))).total_seconds())
    response.set_cookie(
        config.get("AUTH_COOKIE_NAME", "token"),
        token,
        max_age=max_age,
        **_cookie_policy(config),
    )


def clear_session_cookie(response, config: Mapping) -> None:
    response.delete_cookie(
        config.get("AUTH_COOKIE_NAME", "token"),
        **_cookie_policy(config),
    )
