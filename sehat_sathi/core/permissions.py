"""Authorization guard.

Every role and ownership decision in the application goes through the
helpers in this module; routes and services do not compare role strings
themselves.
"""
from sqlalchemy.orm import Session
from typing import Callable, Iterable, Optional, Tuple, Union
import logging

from ..models.account import Account
from .exceptions import AccountInactiveError, ForbiddenError, UnauthenticatedError
from .security import ActorRole, TokenPayload, TokenSigner, UserRole, token_signer

logger = logging.getLogger(__name__)

Role = Union[UserRole, ActorRole, str]


def authenticate(
    db: Session,
    token: Optional[str],
    is_revoked: Optional[Callable[[str], bool]] = None,
    signer: Optional[TokenSigner] = None,
) -> Tuple[Account, TokenPayload]:
    """Resolve a bearer token to a live, active account.

    The token signature and expiry are checked first, then the account is
    re-fetched so deactivation takes effect before the token expires.
    """
    if not token:
        raise UnauthenticatedError()

    token_payload = (signer or token_signer).verify_token(token)

    if is_revoked and token_payload.jti and is_revoked(token_payload.jti):
        raise UnauthenticatedError("Token has been revoked")

    account = db.get(Account, token_payload.account_id)
    if not account:
        raise UnauthenticatedError("User not found")

    if not account.is_active:
        raise AccountInactiveError("User account is inactive")

    if account.role != token_payload.role:
        logger.warning(f"Token role mismatch for account {account.id}")
        raise UnauthenticatedError("Invalid token")

    return account, token_payload


def require_role(caller_role: Role, allowed_roles: Iterable[Role]) -> None:
    allowed = {str(getattr(role, "value", role)) for role in allowed_roles}
    if str(getattr(caller_role, "value", caller_role)) not in allowed:
        raise ForbiddenError()


def require_ownership(caller_id: int, resource_owner_id: int) -> None:
    if caller_id != resource_owner_id:
        raise ForbiddenError("Unauthorized to access this resource")


def require_participant(account: Account, appointment) -> None:
    """Only the appointment's own patient or doctor may see it."""
    if account.id not in (appointment.patient_id, appointment.doctor_id):
        raise ForbiddenError("Unauthorized to access this appointment")
