"""
Auth service — credential verification, session issuing and registration.

Design notes
------------
- Unknown email and wrong password raise the same ``AuthenticationFailed``
  and both cost one hash verification, so neither the message nor the
  response time tells an attacker which emails are registered.
- Session claims are exactly ``{email, userId}``; expiry is added by the
  signer.
- The password hash lives only on the ``User`` row.  Everything handed
  back to callers goes through ``UserPublic``, which has no such field.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from articles_api.exceptions import AuthenticationFailed, DuplicateEmail, InvalidToken
from articles_api.models import User
from articles_api.ports import Hasher, IdentityStore, Signer
from articles_api.schemas import AuthResponse, SessionClaims, UserPublic

logger = logging.getLogger(__name__)

class CredentialVerifier:
    def __init__(self, *, users: IdentityStore, hasher: Hasher) -> None:
        self._users = users
        self._hasher = hasher

    async def verify(self, email: str, password: str) -> User:
        user = await self._users.find_by_email(email)
        if user is None:
            await self._hasher.verify(password, self._hasher.dummy_hash)
            logger.warning("Login failed, unknown email: %s", email)
            raise AuthenticationFailed()

        if not await self._hasher.verify(password, user.password):
            logger.warning("Login failed, wrong password for: %s", email)
            raise AuthenticationFailed()

        return user


class SessionTokenIssuer:
    def __init__(self, *, signer: Signer) -> None:
        self._signer = signer

    def issue(self, user: User) -> AuthResponse:
        claims = SessionClaims(email=user.email, user_id=user.id)
        token = self._signer.sign(claims.model_dump(mode="json", by_alias=True))
        return AuthResponse(access_token=token, user=UserPublic.model_validate(user))

    def verify(self, token: str) -> SessionClaims:
        payload = self._signer.verify(token)
        try:
            return SessionClaims.model_validate(payload)
        except ValidationError as exc:
            raise InvalidToken() from exc


class RegistrationService:
    """
    Creates an account and logs it in straight away.

    Password strength is enforced by ``RegisterRequest`` before this is
    reached.
    """

    def __init__(
        self,
        *,
        users: IdentityStore,
        hasher: Hasher,
        issuer: SessionTokenIssuer,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._issuer = issuer

    async def register(self, email: str, password: str) -> AuthResponse:
        if await self._users.find_by_email(email) is not None:
            logger.warning("Registration failed, email already exists: %s", email)
            raise DuplicateEmail()

        hashed = await self._hasher.hash(password)
        user = await self._users.create(email, hashed)
        logger.info("User registered: %s", email)
        return self._issuer.issue(user)


class AuthService:
    """Facade the auth router talks to."""

    def __init__(
        self,
        *,
        verifier: CredentialVerifier,
        issuer: SessionTokenIssuer,
        registration: RegistrationService,
    ) -> None:
        self._verifier = verifier
        self._issuer = issuer
        self._registration = registration

    async def register(self, email: str, password: str) -> AuthResponse:
        return await self._registration.register(email, password)

    async def login(self, email: str, password: str) -> AuthResponse:
        logger.info("Login attempt: %s", email)
        user = await self._verifier.verify(email, password)
        logger.info("User logged in: %s", email)
        return self._issuer.issue(user)

    def authenticate(self, token: str) -> SessionClaims:
        return self._issuer.verify(token)
