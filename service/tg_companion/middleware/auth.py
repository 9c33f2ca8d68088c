import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tg_companion.config import Settings, get_settings
from tg_companion.logging_config import get_logger

logger = get_logger("auth")

# auto_error=False: a missing header must be 401, not FastAPI's default
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Validate the static bearer token from the Authorization header.

    Runs ahead of the route handler, so a rejected request never
    reaches the completion backend.
    """
    if credentials is None:
        logger.warning("Rejected request without bearer token")
        raise _unauthorized("No Bearer Header")

    if not secrets.compare_digest(
        credentials.credentials.encode(), settings.api_token.encode()
    ):
        logger.warning("Rejected request with invalid bearer token")
        raise _unauthorized("Authentication Error")

    return credentials.credentials
