from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.exceptions import RateLimitedError, UnauthenticatedError
from ..core.permissions import authenticate, require_role
from ..core.security import TokenPayload, UserRole, verify_token
from ..models.account import Account
from ..services.auth_service import is_token_revoked

# Missing credentials are reported through UnauthenticatedError
security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def get_current_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    redis_client=Depends(get_redis),
) -> TokenPayload:
    """Extract and verify the bearer token from the Authorization header."""
    token = _bearer_token(credentials)
    if not token:
        raise UnauthenticatedError()

    token_payload = verify_token(token)
    if token_payload.jti and is_token_revoked(redis_client, token_payload.jti):
        raise UnauthenticatedError("Token has been revoked")
    return token_payload


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    redis_client=Depends(get_redis),
) -> Account:
    """Get the authenticated, still-active account for this request."""
    account, _ = authenticate(
        db,
        _bearer_token(credentials),
        is_revoked=lambda jti: is_token_revoked(redis_client, jti),
    )
    return account


# Role-based access control dependencies
def require_roles(*allowed_roles: UserRole):
    """Create a dependency that requires specific user roles."""
    def role_checker(
        current_account: Account = Depends(get_current_account)
    ) -> Account:
        require_role(current_account.role, allowed_roles)
        return current_account

    return role_checker


def get_patient_account(
    current_account: Account = Depends(require_roles(UserRole.PATIENT))
) -> Account:
    """Require patient role."""
    return current_account


def get_doctor_account(
    current_account: Account = Depends(require_roles(UserRole.DOCTOR))
) -> Account:
    """Require doctor role."""
    return current_account


# Rate limiting dependency
def rate_limit_check(
    request: Request,
    redis_client=Depends(get_redis),
) -> None:
    """Basic per-client rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)
    elif int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
        raise RateLimitedError()
    else:
        redis_client.incr(key)
