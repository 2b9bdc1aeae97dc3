"""
Auth tests — registration, login and bearer-token verification, both at
the service layer and through the HTTP endpoints.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from articles_api.dependencies import get_auth_service
from articles_api.exceptions import AuthenticationFailed, DuplicateEmail, InvalidToken
from articles_api.repositories import SqlAlchemyIdentityStore
from articles_api.security import JwtSigner
from articles_api.services.auth_service import (
    AuthService,
    CredentialVerifier,
    RegistrationService,
    SessionTokenIssuer,
)

PASSWORD = "Str0ng!Pass"


def _auth_service(db: AsyncSession, hasher, signer) -> AuthService:
    users = SqlAlchemyIdentityStore(db)
    issuer = SessionTokenIssuer(signer=signer)
    return AuthService(
        verifier=CredentialVerifier(users=users, hasher=hasher),
        issuer=issuer,
        registration=RegistrationService(users=users, hasher=hasher, issuer=issuer),
    )


# ---------------------------------------------------------------------------
# Service layer
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_returns_token_and_public_user(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    result = await service.register("new@example.com", PASSWORD)

    assert result.access_token
    assert result.user.email == "new@example.com"
    dumped = result.model_dump(by_alias=True)
    assert "password" not in dumped["user"]
    assert set(dumped["user"]) == {"id", "email", "createdAt", "updatedAt"}


@pytest.mark.asyncio
async def test_register_stores_only_a_hash(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    await service.register("hashed@example.com", PASSWORD)

    user = await SqlAlchemyIdentityStore(db_session).find_by_email("hashed@example.com")
    assert user is not None
    assert user.password != PASSWORD
    assert user.password.startswith("$2b$")
    assert await hasher.verify(PASSWORD, user.password)


@pytest.mark.asyncio
async def test_register_duplicate_email_fails_regardless_of_password(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    await service.register("dup@example.com", PASSWORD)

    with pytest.raises(DuplicateEmail):
        await service.register("dup@example.com", PASSWORD)
    with pytest.raises(DuplicateEmail):
        await service.register("dup@example.com", "0ther!Password")


@pytest.mark.asyncio
async def test_register_token_carries_email_and_user_id(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    result = await service.register("claims@example.com", PASSWORD)

    claims = service.authenticate(result.access_token)
    assert claims.email == "claims@example.com"
    assert claims.user_id == result.user.id

    payload = signer.verify(result.access_token)
    assert set(payload) == {"email", "userId", "iat", "exp"}


@pytest.mark.asyncio
async def test_login_with_correct_credentials(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    registered = await service.register("login@example.com", PASSWORD)

    result = await service.login("login@example.com", PASSWORD)
    assert result.access_token
    assert result.user.id == registered.user.id


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    await service.register("known@example.com", PASSWORD)

    with pytest.raises(AuthenticationFailed) as wrong_password:
        await service.login("known@example.com", "Wr0ng!Pass")
    with pytest.raises(AuthenticationFailed) as unknown_email:
        await service.login("unknown@example.com", PASSWORD)

    assert type(wrong_password.value) is type(unknown_email.value)
    assert wrong_password.value.message == unknown_email.value.message
    assert wrong_password.value.status_code == unknown_email.value.status_code


@pytest.mark.asyncio
async def test_login_email_match_is_exact(db_session, hasher, signer):
    service = _auth_service(db_session, hasher, signer)
    await service.register("exact@example.com", PASSWORD)

    with pytest.raises(AuthenticationFailed):
        await service.login("EXACT@example.com", PASSWORD)


class CountingHasher:
    """Cheap stand-in hasher that counts every hash and verify call."""

    def __init__(self):
        self.dummy_hash = "hashed:dummy"
        self.operations = 0

    async def hash(self, plaintext):
        self.operations += 1
        return "hashed:" + plaintext

    async def verify(self, plaintext, hashed):
        self.operations += 1
        return hashed == "hashed:" + plaintext


@pytest.mark.asyncio
async def test_unknown_email_costs_the_same_hashing_as_wrong_password(db_session, signer):
    counting = CountingHasher()
    await get_auth_service(db_session, counting, signer).register("known@example.com", PASSWORD)

    # A fresh service per login, as each request builds its own.
    counting.operations = 0
    with pytest.raises(AuthenticationFailed):
        await get_auth_service(db_session, counting, signer).login("known@example.com", "Wr0ng!Pass")
    wrong_password_ops = counting.operations

    counting.operations = 0
    with pytest.raises(AuthenticationFailed):
        await get_auth_service(db_session, counting, signer).login("ghost@example.com", PASSWORD)
    unknown_email_ops = counting.operations

    assert wrong_password_ops == unknown_email_ops == 1


def test_password_hasher_precomputes_dummy_hash(hasher):
    assert hasher.dummy_hash.startswith("$2b$04$")


@pytest.mark.asyncio
async def test_duplicate_insert_maps_to_duplicate_email(db_session, hasher):
    store = SqlAlchemyIdentityStore(db_session)
    await store.create("race@example.com", await hasher.hash(PASSWORD))

    with pytest.raises(DuplicateEmail):
        await store.create("race@example.com", await hasher.hash(PASSWORD))
    assert await store.find_by_email("race@example.com") is not None


@pytest.mark.asyncio
async def test_registration_losing_a_race_raises_duplicate_email(db_session, hasher, signer):
    class LateStore(SqlAlchemyIdentityStore):
        """Misses the existing row on lookup, as a concurrent insert would."""

        async def find_by_email(self, email):
            return None

    await SqlAlchemyIdentityStore(db_session).create("late@example.com", await hasher.hash(PASSWORD))
    store = LateStore(db_session)
    registration = RegistrationService(
        users=store, hasher=hasher, issuer=SessionTokenIssuer(signer=signer)
    )

    with pytest.raises(DuplicateEmail):
        await registration.register("late@example.com", PASSWORD)


def test_tampered_token_is_rejected(signer):
    issuer = SessionTokenIssuer(signer=signer)
    token = signer.sign({"email": "a@example.com", "userId": "6f1c2b0e-6a43-4c55-9c39-3f7f0f6b9a11"})
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidToken):
        issuer.verify(tampered)


def test_expired_token_is_rejected():
    signer = JwtSigner(expires_in=-10)
    issuer = SessionTokenIssuer(signer=signer)
    token = signer.sign({"email": "a@example.com", "userId": "6f1c2b0e-6a43-4c55-9c39-3f7f0f6b9a11"})

    with pytest.raises(InvalidToken):
        issuer.verify(token)


def test_token_signed_with_other_key_is_rejected(signer):
    foreign = JwtSigner(secret="not-the-server-secret-but-long-enough-for-hs256")
    token = foreign.sign({"email": "a@example.com", "userId": "6f1c2b0e-6a43-4c55-9c39-3f7f0f6b9a11"})

    with pytest.raises(InvalidToken):
        SessionTokenIssuer(signer=signer).verify(token)


def test_token_without_expected_claims_is_rejected(signer):
    token = signer.sign({"sub": "someone"})

    with pytest.raises(InvalidToken):
        SessionTokenIssuer(signer=signer).verify(token)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_endpoint(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/register", json={
        "email": "http@example.com",
        "password": PASSWORD,
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["access_token"]
    assert body["user"]["email"] == "http@example.com"
    assert "password" not in body["user"]
    assert "createdAt" in body["user"]
    assert "updatedAt" in body["user"]


@pytest.mark.asyncio
async def test_register_endpoint_duplicate_email(async_client: AsyncClient):
    payload = {"email": "twice@example.com", "password": PASSWORD}
    assert (await async_client.post("/api/auth/register", json=payload)).status_code == 201

    resp = await async_client.post("/api/auth/register", json=payload)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "NoDigits!!", "NoSymbols123"])
async def test_register_endpoint_rejects_weak_passwords(async_client: AsyncClient, password):
    resp = await async_client.post("/api/auth/register", json={
        "email": "weak@example.com",
        "password": password,
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_register_endpoint_rejects_invalid_email(async_client: AsyncClient):
    resp = await async_client.post("/api/auth/register", json={
        "email": "not-an-email",
        "password": PASSWORD,
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_endpoint(async_client: AsyncClient):
    await async_client.post("/api/auth/register", json={
        "email": "httplogin@example.com",
        "password": PASSWORD,
    })

    resp = await async_client.post("/api/auth/login", json={
        "email": "httplogin@example.com",
        "password": PASSWORD,
    })
    assert resp.status_code == 200
    assert resp.json()["access_token"]
    assert resp.json()["user"]["email"] == "httplogin@example.com"


@pytest.mark.asyncio
async def test_login_endpoint_failures_share_one_response(async_client: AsyncClient):
    await async_client.post("/api/auth/register", json={
        "email": "enum@example.com",
        "password": PASSWORD,
    })

    wrong_password = await async_client.post("/api/auth/login", json={
        "email": "enum@example.com",
        "password": "Wr0ng!Pass",
    })
    unknown_email = await async_client.post("/api/auth/login", json={
        "email": "nobody@example.com",
        "password": PASSWORD,
    })
    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
