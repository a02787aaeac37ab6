"""FastAPI dependency: get_upstream_token.

The engine does not authenticate users itself. The client's bearer token is
forwarded unchanged to the upstream backend, which owns the session.

Usage in any router:
    from src.cm_gateway.auth.dependencies import get_upstream_token

    @router.get("/holdings/{holding_id}/actions")
    async def actions(token: Annotated[str, Depends(get_upstream_token)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

bearer_scheme = HTTPBearer(auto_error=False)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Missing bearer token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_upstream_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the raw bearer token; HTTP 401 if absent or blank."""
    if credentials is None or not credentials.credentials.strip():
        raise _CREDENTIALS_EXCEPTION
    return credentials.credentials.strip()
