"""
Token validation and path identifier checks
"""

import time
import uuid

import jwt
import pytest
from fastapi import HTTPException

from config.settings import ENV
from services.user_jwt_service import user_jwt_service, generate_user_jwt, validate_user_jwt
from utils.auth import authenticate_user
from utils.identifiers import is_valid_id, check_panel_id


def _sign(**claims):
    """Sign arbitrary claims with the server's key"""
    now = int(time.time())
    payload = {
        "iss": user_jwt_service.issuer,
        "aud": user_jwt_service.audience,
        "environment": ENV,
        "iat": now,
        "exp": now + 60,
    }
    payload.update(claims)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, user_jwt_service.secret_key, algorithm="HS256")


class TestUserJWT:

    def test_round_trip_normalises_subject(self):
        user_id = uuid.uuid4()
        token = generate_user_jwt(str(user_id).upper())

        payload = validate_user_jwt(token)

        assert payload["sub"] == str(user_id)

    def test_generate_rejects_non_uuid_subject(self):
        with pytest.raises(ValueError):
            generate_user_jwt("alice")

    def test_expired_token(self):
        token = generate_user_jwt(str(uuid.uuid4()), expires_in=-10)

        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            validate_user_jwt(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "iss": user_jwt_service.issuer, "aud": user_jwt_service.audience,
             "environment": ENV, "iat": int(time.time()), "exp": int(time.time()) + 60},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256"
        )

        with pytest.raises(jwt.InvalidTokenError):
            validate_user_jwt(token)

    def test_wrong_audience(self):
        with pytest.raises(jwt.InvalidTokenError, match="audience"):
            validate_user_jwt(_sign(sub=str(uuid.uuid4()), aud="someone-else"))

    def test_environment_mismatch(self):
        with pytest.raises(jwt.InvalidTokenError, match="Environment mismatch"):
            validate_user_jwt(_sign(sub=str(uuid.uuid4()), environment="SOMEWHERE-ELSE"))

    def test_missing_environment_claim(self):
        with pytest.raises(jwt.InvalidTokenError, match="environment"):
            validate_user_jwt(_sign(sub=str(uuid.uuid4()), environment=None))

    def test_non_uuid_subject(self):
        with pytest.raises(jwt.InvalidTokenError, match="valid user ID"):
            validate_user_jwt(_sign(sub="alice"))


class TestAuthenticateUser:

    @pytest.mark.asyncio
    async def test_valid_bearer_token(self):
        user_id = str(uuid.uuid4())

        context = await authenticate_user(f"Bearer {generate_user_jwt(user_id)}")

        assert context.is_authenticated
        assert context.user_id == user_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "Bearer not-a-jwt"])
    async def test_rejected_headers(self, header):
        with pytest.raises(HTTPException) as exc_info:
            await authenticate_user(header)

        assert exc_info.value.status_code == 401


class TestIdentifiers:

    @pytest.mark.parametrize("value,expected", [
        (str(uuid.uuid4()), True),
        (str(uuid.uuid4()).upper(), True),
        ("5f1d7f2e9c1b2a0017a1b2c3", False),  # 24-hex document ids are not accepted
        ("not-an-id", False),
        ("", False),
    ])
    def test_is_valid_id(self, value, expected):
        assert is_valid_id(value) is expected

    @pytest.mark.asyncio
    async def test_check_panel_id_canonicalises(self):
        panel_id = uuid.uuid4()

        assert await check_panel_id(str(panel_id).upper()) == str(panel_id)

    @pytest.mark.asyncio
    async def test_check_panel_id_rejects(self):
        with pytest.raises(HTTPException) as exc_info:
            await check_panel_id("nope")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Invalid ID"
