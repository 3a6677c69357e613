"""bcrypt-backed password hashing."""

from __future__ import annotations

import bcrypt

from ..domain.errors import ValidationError

# bcrypt ignores (or, in recent releases, rejects) input past 72 bytes.
_MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted one-way hashing with a fixed cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        raw = password.encode("utf-8")
        if len(raw) > _MAX_PASSWORD_BYTES:
            raise ValidationError("password is too long")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` when ``password`` matches the stored hash."""
        raw = password.encode("utf-8")
        if len(raw) > _MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            return False
