import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

logger = logging.getLogger(__name__)

AUTH_USER = "digistormconnector"
AUTH_REALM = "Digistorm Connector"

basic_auth = HTTPBasic(realm=AUTH_REALM, auto_error=False)


def check_credentials(credentials: Optional[HTTPBasicCredentials], api_key: str) -> bool:
    if credentials is None or not api_key:
        return False
    user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), AUTH_USER.encode("utf-8"))
    key_ok = secrets.compare_digest(credentials.password.encode("utf-8"), api_key.encode("utf-8"))
    return user_ok and key_ok


def require_api_key(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
) -> str:
    """Route dependency: HTTP Basic auth with the fixed user and the configured API key."""
    if not check_credentials(credentials, request.app.state.config.api_key):
        logger.warning(
            "[Auth] rejected request to %s from %s",
            request.url.path,
            request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="401 Unauthorized",
            headers={"WWW-Authenticate": f'Basic realm="{AUTH_REALM}"'},
        )
    return credentials.username
