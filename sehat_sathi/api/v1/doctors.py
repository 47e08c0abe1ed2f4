from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_doctor_account
from ...services.doctor_service import DoctorService
from ...schemas.doctor import DoctorProfileCreate, DoctorProfileUpdate, DoctorProfileResponse
from ...schemas.common import ApiResponse
from ...models.account import Account

router = APIRouter(prefix="/doctors", tags=["Doctors"])


# Doctor-only routes
@router.post(
    "/profile",
    response_model=ApiResponse[DoctorProfileResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_profile(
    profile_data: DoctorProfileCreate,
    current_account: Account = Depends(get_doctor_account),
    db: Session = Depends(get_db),
):
    profile = DoctorService(db).create_profile(current_account, profile_data)
    return ApiResponse[DoctorProfileResponse](
        message="Doctor profile created successfully",
        data=DoctorProfileResponse.model_validate(profile),
    )


@router.get("/profile/me", response_model=ApiResponse[DoctorProfileResponse])
def get_own_profile(
    current_account: Account = Depends(get_doctor_account),
    db: Session = Depends(get_db),
):
    profile = DoctorService(db).get_profile(current_account.id)
    return ApiResponse[DoctorProfileResponse](
        message="Profile retrieved successfully",
        data=DoctorProfileResponse.model_validate(profile),
    )


@router.put("/profile", response_model=ApiResponse[DoctorProfileResponse])
def update_profile(
    profile_data: DoctorProfileUpdate,
    current_account: Account = Depends(get_doctor_account),
    db: Session = Depends(get_db),
):
    profile = DoctorService(db).update_profile(current_account.id, profile_data)
    return ApiResponse[DoctorProfileResponse](
        message="Profile updated successfully",
        data=DoctorProfileResponse.model_validate(profile),
    )


# Public routes
@router.get("", response_model=ApiResponse[List[DoctorProfileResponse]])
def list_doctors(
    specialization: Optional[str] = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
):
    """List doctors, optionally filtered by specialization."""
    doctors = DoctorService(db).list_doctors(specialization)
    return ApiResponse[List[DoctorProfileResponse]](
        message="Doctors retrieved successfully",
        data=[DoctorProfileResponse.model_validate(doctor) for doctor in doctors],
    )


@router.get("/{profile_id}", response_model=ApiResponse[DoctorProfileResponse])
def get_doctor(profile_id: int, db: Session = Depends(get_db)):
    profile = DoctorService(db).get_by_id(profile_id)
    return ApiResponse[DoctorProfileResponse](
        message="Doctor retrieved successfully",
        data=DoctorProfileResponse.model_validate(profile),
    )
