from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import Optional
import logging

from ..models.account import Account
from ..core.config import settings
from ..core.security import TokenPayload, TokenSigner, token_signer
from ..schemas.auth import AccountRegister, AccountLogin, AccountResponse, AuthResponse
from .identity_service import IdentityService

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "revoked_token:"


def is_token_revoked(redis_client, jti: str) -> bool:
    return redis_client.get(f"{REVOKED_TOKEN_PREFIX}{jti}") is not None


class AuthService:
    def __init__(self, db: Session, signer: Optional[TokenSigner] = None):
        self.db = db
        self.identity = IdentityService(db)
        self.signer = signer or token_signer

    def register_user(self, account_data: AccountRegister) -> AuthResponse:
        """Register a new user and sign them in."""
        account = self.identity.register_account(account_data)
        return self._token_response(account)

    def authenticate_user(self, login_data: AccountLogin) -> AuthResponse:
        """Authenticate user and return a bearer token."""
        account = self.identity.verify_credentials(login_data.email, login_data.password)
        logger.info(f"Account {account.id} logged in")
        return self._token_response(account)

    def logout_user(self, token_payload: TokenPayload, redis_client) -> None:
        """Revoke the presented token until it would have expired anyway."""
        if not token_payload.jti:
            return

        remaining = token_payload.exp - int(datetime.now(timezone.utc).timestamp())
        if remaining > 0:
            redis_client.setex(f"{REVOKED_TOKEN_PREFIX}{token_payload.jti}", remaining, "1")
        logger.info(f"Account {token_payload.account_id} logged out")

    def _token_response(self, account: Account) -> AuthResponse:
        return AuthResponse(
            user=AccountResponse.model_validate(account),
            token=self.signer.issue_token(account.id, account.role),
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
