"""JWT token creation and verification.

Identity is owned by an external provider; this service only verifies the
token it was handed. "sub" is the provider's stable subject (external_id),
"name" the display name used when the first request opens the account.

MVP NOTE: Using HS256 (symmetric HMAC) with one shared JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.pw_common.errors import InvalidCredentialsError


class TokenCodec:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)

    def create_access_token(self, external_id: str, display_name: str) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": external_id,
            "name": display_name,
            "type": "access",
            "iat": now,
            "exp": now + self._expire,
        }
        return str(jwt.encode(payload, self._secret, algorithm=self._algorithm))

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate an access token.

        Raises:
            InvalidCredentialsError: signature invalid, expired, wrong type, or no subject.
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],  # Explicit list prevents algorithm confusion
            )
        except JWTError:
            raise InvalidCredentialsError() from None

        if payload.get("type") != "access" or not payload.get("sub"):
            raise InvalidCredentialsError()
        return payload
