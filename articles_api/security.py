"""Password hashing and bearer-token signing primitives."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher

from articles_api.config import settings
from articles_api.exceptions import InvalidToken

_DUMMY_PASSWORD = "dummy-password-for-timing"


class PasswordHasher:
    """
    Salted one-way password hashing (bcrypt).

    bcrypt is deliberately slow, so both operations run in a worker thread
    to keep the event loop responsive.

    ``dummy_hash`` is computed once at construction with the same work
    factor; login verifies against it when the email is unknown.
    """

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds or settings.BCRYPT_ROUNDS
        self._password_hash = PasswordHash((BcryptHasher(rounds=self.rounds),))
        self.dummy_hash = self._password_hash.hash(_DUMMY_PASSWORD)

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self._password_hash.hash, plaintext)

    async def verify(self, plaintext: str, hashed: str) -> bool:
        return await asyncio.to_thread(self._password_hash.verify, plaintext, hashed)


class JwtSigner:
    """Stateless HS256 bearer tokens with an expiry claim."""

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        expires_in: int | None = None,
    ) -> None:
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expires_in = timedelta(
            seconds=expires_in if expires_in is not None else settings.JWT_EXPIRES_IN_SECONDS
        )

    def sign(self, claims: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + self.expires_in}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except InvalidTokenError as exc:
            raise InvalidToken() from exc
