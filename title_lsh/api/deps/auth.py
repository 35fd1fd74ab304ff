"""
Authentication dependencies
"""
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ...core.config import settings

security = HTTPBearer(auto_error=False)


def verify_api_key(credentials: Optional[HTTPAuthorizationCredentials] = Security(security)) -> Optional[str]:
    """
    Check the bearer token against API_KEY

    An empty API_KEY leaves the lookup endpoints open, as they are when the
    server only listens on the internal network.
    """
    if not settings.API_KEY:
        return None
    if credentials is None or credentials.credentials != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return credentials.credentials
