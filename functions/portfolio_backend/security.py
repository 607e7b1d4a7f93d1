"""
Bearer credential check for the admin-facing routes.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_backend.config import Settings, get_settings

security = HTTPBearer(auto_error=False)


def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Require an ``Authorization: Bearer`` header.

    With ``API_TOKEN`` configured the token must match it; otherwise any
    non-empty credential is accepted.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    token = credentials.credentials
    if settings.api_token and not secrets.compare_digest(
        token.encode("utf-8"), settings.api_token.encode("utf-8")
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return token
