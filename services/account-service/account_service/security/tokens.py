"""Issuing and validating session JWTs."""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt

from ..domain.errors import InvalidTokenError

_ALGORITHM = "HS256"


class TokenIssuer:
    """Signs and verifies session tokens bound to an account identifier."""

    def __init__(self, *, secret: str, issuer: str, ttl_seconds: int) -> None:
        """Keep the signing secret, issuer claim and token lifetime."""
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds

    def issue(self, account_id: str) -> str:
        """Create a signed JWT for ``account_id``.

        Parameters
        ----------
        account_id:
            Account identifier embedded in the ``sub`` claim.

        Returns
        -------
        str
            The encoded token. Each call carries a fresh ``jti`` so two
            tokens minted within the same second never collide.
        """

        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": account_id,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the account id carried by ``token``.

        Raises
        ------
        InvalidTokenError
            When the signature, issuer, structure or expiry check fails.
        """

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("token has no subject")
        return subject
