from typing import Annotated, Mapping

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from apps.ticketing.core.config import get_settings


class AuthenticatedUser:
    """Caller identity resolved from a bearer token."""

    def __init__(self, user_id: str):
        self.user_id = user_id


bearer_scheme = HTTPBearer(auto_error=False)


def resolve_user_from_token(token: str | None, tokens: Mapping[str, str]) -> AuthenticatedUser:
    """Return the user bound to ``token`` in the configured token map."""

    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = tokens.get(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    return AuthenticatedUser(user_id=user_id)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> AuthenticatedUser:
    """Token lookup stub.

    Tokens are mapped to user ids through the ``API_TOKENS`` setting; issuing
    and verifying real credentials belongs to a separate identity service.
    """

    cached = getattr(request.state, "user", None)
    if isinstance(cached, AuthenticatedUser):
        return cached

    token = credentials.credentials if credentials is not None else None
    user = resolve_user_from_token(token, get_settings().api_tokens)
    request.state.user = user
    return user


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
