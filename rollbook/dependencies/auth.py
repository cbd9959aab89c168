"""
Rollbook Backend — Bearer Token Gate
======================================

What:  FastAPI dependency that accepts or rejects a request's bearer token.
Why:   Every /api/students route requires a valid token; /uploads, /health
       and /api/users stay open.
How:   HS256 JWT verified with settings.jwt_secret_key; signature and expiry
       are the whole contract. Token issuance lives outside this service.
"""

import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rollbook.config import settings
from rollbook.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False: a missing header becomes our 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token expired")
    except jwt.PyJWTError as e:
        logger.debug("Rejected bearer token: %s", str(e))
        raise AuthenticationError(message="Invalid token")


def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Returns the verified token claims or raises AuthenticationError (401)."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Authorization token missing")
    return decode_token(credentials.credentials)
