from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_patient_account
from ...services.identity_service import IdentityService
from ...schemas.auth import AccountResponse, AccountUpdate
from ...schemas.common import ApiResponse
from ...models.account import Account

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/profile", response_model=ApiResponse[AccountResponse])
def get_profile(current_account: Account = Depends(get_patient_account)):
    return ApiResponse[AccountResponse](
        message="Profile retrieved successfully",
        data=AccountResponse.model_validate(current_account),
    )


@router.put("/profile", response_model=ApiResponse[AccountResponse])
def update_profile(
    profile_data: AccountUpdate,
    current_account: Account = Depends(get_patient_account),
    db: Session = Depends(get_db),
):
    """Update name, phone, address, date of birth and gender."""
    account = IdentityService(db).update_account(
        current_account.id, profile_data.model_dump(exclude_unset=True)
    )
    return ApiResponse[AccountResponse](
        message="Profile updated successfully",
        data=AccountResponse.model_validate(account),
    )
