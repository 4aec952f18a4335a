# services/user_store.py
"""
Credential store.

Public API (both implementations):
  - find_by_email(email) -> User | None     (callers pass a normalized email)
  - find_by_id(user_id)  -> User | None
  - create(name=, email=, password_hash=) -> User   (Conflict if email taken)
  - save(user)                                        (full-record upsert)
  - clear_otp_if(user_id, purpose, code) -> bool
      Clears the purpose's code + expiry only while the stored code still equals
      ``code``. This is the store's compare-and-set; single-use OTP consumption
      relies on it.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from db import db
from models.user import OTP_COLUMNS, OtpPurpose, User, utcnow_naive
from services.errors import Conflict, StoreUnavailable

log = logging.getLogger("store")


class UserStore:
    def find_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def find_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def create(self, *, name: str, email: str, password_hash: str) -> User:
        raise NotImplementedError

    def save(self, user: User) -> None:
        raise NotImplementedError

    def clear_otp_if(self, user_id: str, purpose: OtpPurpose, code: str) -> bool:
        raise NotImplementedError


class MemoryUserStore(UserStore):
    """Process-local store; one lock serializes every mutation."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: Dict[str, User] = {}
        self._id_by_email: Dict[str, str] = {}

    def find_by_email(self, email: str) -> Optional[User]:
        uid = self._id_by_email.get(email)
        return self._by_id.get(uid) if uid else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._by_id.get(user_id)

    def create(self, *, name: str, email: str, password_hash: str) -> User:
        user = User.new(name=name, email=email, password_hash=password_hash)
        with self._lock:
            if email in self._id_by_email:
                raise Conflict()
            self._by_id[user.id] = user
            self._id_by_email[email] = user.id
        return user

    def save(self, user: User) -> None:
        with self._lock:
            previous = self._by_id.get(user.id)
            if previous is not None and previous.email != user.email:
                self._id_by_email.pop(previous.email, None)
            user.updated_at = utcnow_naive()
            self._by_id[user.id] = user
            self._id_by_email[user.email] = user.id

    def clear_otp_if(self, user_id: str, purpose: OtpPurpose, code: str) -> bool:
        with self._lock:
            user = self._by_id.get(user_id)
            if user is None or not code:
                return False
            current, _ = user.pending_otp(purpose)
            if current != code:
                return False
            user.clear_otp(purpose)
            user.updated_at = utcnow_naive()
            return True

    def __len__(self) -> int:
        return len(self._by_id)


class SqlUserStore(UserStore):
    """
    Flask-SQLAlchemy backed store (needs an app context).
    Dropped connections on reads are retried once after disposing the pool.
    """

    def _read(self, fn):
        try:
            return fn()
        except OperationalError as e:
            log.warning("[store] DB connection dropped; retrying once… %s", e)
            db.session.remove()
            db.engine.dispose()
            try:
                return fn()
            except OperationalError as e2:
                db.session.rollback()
                log.error("[store] read failed after retry: %s", e2)
                raise StoreUnavailable() from e2

    def _write(self, fn):
        try:
            result = fn()
            db.session.commit()
            return result
        except IntegrityError as e:
            db.session.rollback()
            raise Conflict() from e
        except OperationalError as e:
            db.session.rollback()
            log.error("[store] write failed: %s", e)
            raise StoreUnavailable() from e

    def find_by_email(self, email: str) -> Optional[User]:
        return self._read(lambda: User.query.filter_by(email=email).first())

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._read(lambda: db.session.get(User, user_id))

    def create(self, *, name: str, email: str, password_hash: str) -> User:
        user = User.new(name=name, email=email, password_hash=password_hash)

        def _insert():
            db.session.add(user)
            return user

        return self._write(_insert)

    def save(self, user: User) -> None:
        self._write(lambda: db.session.merge(user))

    def clear_otp_if(self, user_id: str, purpose: OtpPurpose, code: str) -> bool:
        if not code:
            return False
        code_col, exp_col = OTP_COLUMNS[OtpPurpose(purpose)]
        stmt = (
            update(User)
            .where(User.id == user_id, getattr(User, code_col) == code)
            .values({code_col: "", exp_col: None, "updated_at": utcnow_naive()})
            .execution_options(synchronize_session=False)
        )
        result = self._write(lambda: db.session.execute(stmt))
        return result.rowcount == 1
