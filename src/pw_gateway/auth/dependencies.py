"""FastAPI dependencies: the composition root and the caller identity.

Usage in any protected router:
    @router.get("/protected")
    async def protected(identity: Annotated[Identity, Depends(get_identity)]):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pw_common.errors import InvalidCredentialsError
from src.pw_gateway.auth.identity import Identity
from src.wiring import Container

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_container(request: Request) -> Container:
    return request.app.state.container  # type: ignore[no-any-return]


async def get_identity(
    container: Annotated[Container, Depends(get_container)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity:
    """Validate the Bearer token and resolve (or open) the caller's account.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = container.tokens.decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    external_id = str(payload["sub"])
    display_name = str(payload.get("name") or external_id)
    account = await container.accounts.get_or_open(external_id, display_name)
    return Identity(
        account_id=account.id,
        external_id=external_id,
        display_name=account.display_name,
        is_admin=external_id in container.admin_external_ids,
    )
