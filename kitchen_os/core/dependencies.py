"""
Authentication dependencies for FastAPI
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Dict
import uuid
import structlog

from kitchen_os.core.auth import decode_access_token

logger = structlog.get_logger(__name__)
security = HTTPBearer()


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Dict:
    """Decode the bearer token once per request"""
    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub") or not payload.get("branch_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_staff_id(claims: Dict = Depends(get_token_claims)) -> uuid.UUID:
    """Get current staff member ID from JWT token"""
    staff_id = uuid.UUID(claims["sub"])
    logger.debug("Staff authenticated", staff_id=str(staff_id))
    return staff_id


async def get_branch_id(claims: Dict = Depends(get_token_claims)) -> uuid.UUID:
    """Get branch ID from JWT token"""
    return uuid.UUID(claims["branch_id"])


async def get_staff_role(claims: Dict = Depends(get_token_claims)) -> str:
    """Get staff role from JWT token"""
    return claims.get("role", "")
