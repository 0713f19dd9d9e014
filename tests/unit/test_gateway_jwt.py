"""Tests for pw_gateway.auth.jwt_handler."""
from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from src.pw_common.errors import InvalidCredentialsError
from src.pw_gateway.auth.jwt_handler import TokenCodec

SECRET = "unit-test-secret"


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET)


class TestTokenCodec:
    def test_round_trip_claims(self, codec: TokenCodec) -> None:
        token = codec.create_access_token("sub-alice", "Alice")
        payload = codec.decode_token(token)
        assert payload["sub"] == "sub-alice"
        assert payload["name"] == "Alice"
        assert payload["type"] == "access"

    def test_wrong_secret(self, codec: TokenCodec) -> None:
        token = TokenCodec("other-secret").create_access_token("sub-alice", "Alice")
        with pytest.raises(InvalidCredentialsError):
            codec.decode_token(token)

    def test_expired(self, codec: TokenCodec) -> None:
        token = TokenCodec(SECRET, expire_minutes=-1).create_access_token("sub-alice", "Alice")
        with pytest.raises(InvalidCredentialsError):
            codec.decode_token(token)

    def test_garbage(self, codec: TokenCodec) -> None:
        with pytest.raises(InvalidCredentialsError):
            codec.decode_token("not.a.token")

    def test_wrong_type(self, codec: TokenCodec) -> None:
        exp = datetime.now(UTC) + timedelta(minutes=5)
        token = jwt.encode({"sub": "sub-alice", "type": "refresh", "exp": exp}, SECRET)
        with pytest.raises(InvalidCredentialsError):
            codec.decode_token(token)

    def test_missing_subject(self, codec: TokenCodec) -> None:
        exp = datetime.now(UTC) + timedelta(minutes=5)
        token = jwt.encode({"type": "access", "exp": exp}, SECRET)
        with pytest.raises(InvalidCredentialsError):
            codec.decode_token(token)
