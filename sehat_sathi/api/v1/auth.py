from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db, get_redis
from ...core.security import TokenPayload
from ...api.deps import get_current_account, get_current_token_payload, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import AccountRegister, AccountLogin, AccountResponse, AuthResponse
from ...schemas.common import ApiResponse
from ...models.account import Account

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    account_data: AccountRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient or doctor."""
    auth_service = AuthService(db)
    result = auth_service.register_user(account_data)
    return ApiResponse[AuthResponse](message="User registered successfully", data=result)


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(
    login_data: AccountLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return a bearer token."""
    auth_service = AuthService(db)
    result = auth_service.authenticate_user(login_data)
    return ApiResponse[AuthResponse](message="Login successful", data=result)


@router.get("/me", response_model=ApiResponse[AccountResponse])
def get_current_user_info(
    current_account: Account = Depends(get_current_account)
):
    """Get current user information."""
    return ApiResponse[AccountResponse](
        message="User profile retrieved successfully",
        data=AccountResponse.model_validate(current_account),
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    token_payload: TokenPayload = Depends(get_current_token_payload),
    db: Session = Depends(get_db),
    redis_client=Depends(get_redis),
):
    """Revoke the bearer token used for this request."""
    auth_service = AuthService(db)
    auth_service.logout_user(token_payload, redis_client)
    return ApiResponse[None](message="Successfully logged out")
