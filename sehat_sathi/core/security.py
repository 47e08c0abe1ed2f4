from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
import secrets
from enum import Enum

from .config import settings
from .exceptions import InvalidTokenError, TokenExpiredError


class UserRole(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"


class ActorRole(str, Enum):
    """Who performed an action on an appointment."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    SYSTEM = "system"


class TokenPayload(BaseModel):
    sub: str = Field(pattern=r"^\d+$")
    role: UserRole
    exp: int
    jti: Optional[str] = None

    @property
    def account_id(self) -> int:
        return int(self.sub)


# Password hashing
class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, hashed_password: str) -> bool:
        ...


class BcryptPasswordHasher:
    """bcrypt hashing through passlib."""

    def __init__(self, rounds: Optional[int] = None):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds or settings.BCRYPT_ROUNDS,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        if not hashed_password:
            return False
        return self._context.verify(password, hashed_password)


# Token signing
class TokenSigner(Protocol):
    def issue_token(self, account_id: int, role: UserRole, ttl: Optional[timedelta] = None) -> str:
        ...

    def verify_token(self, token: str) -> TokenPayload:
        ...


class JWTTokenSigner:
    """Stateless signed bearer tokens.

    Tokens carry the account id (``sub``), the role at issuance, an expiry and
    a random ``jti`` so a single token can be revoked on logout.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def issue_token(self, account_id: int, role: UserRole, ttl: Optional[timedelta] = None) -> str:
        if ttl is None:
            ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode = {
            "sub": str(account_id),
            "role": UserRole(role).value,
            "exp": datetime.now(timezone.utc) + ttl,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenPayload:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError:
            raise InvalidTokenError()

        try:
            token_payload = TokenPayload(**payload)
        except PydanticValidationError:
            raise InvalidTokenError("Invalid token payload")

        return token_payload


password_hasher = BcryptPasswordHasher()
token_signer = JWTTokenSigner(settings.SECRET_KEY, settings.ALGORITHM)


def issue_token(account_id: int, role: UserRole, ttl: Optional[timedelta] = None) -> str:
    """Issue a bearer token with the application signer."""
    return token_signer.issue_token(account_id, role, ttl)


def verify_token(token: str) -> TokenPayload:
    """Verify a bearer token with the application signer."""
    return token_signer.verify_token(token)
