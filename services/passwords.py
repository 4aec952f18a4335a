# services/passwords.py
from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


class PasswordHasher:
    """
    Salted one-way hashing on top of Werkzeug.

    ``method`` is any Werkzeug method string ("scrypt", "pbkdf2:sha256:600000").
    The stored hash embeds method, cost and salt, so changing ``method`` does not
    break verification of older hashes.
    """

    def __init__(self, method: str = "scrypt"):
        self.method = method

    def hash(self, plain: str) -> str:
        return generate_password_hash(plain, method=self.method)

    def verify(self, plain: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        try:
            return check_password_hash(hashed, plain or "")
        except (ValueError, TypeError):
            # unknown method / corrupt hash string
            return False
