from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.permissions import require_participant
from ...api.deps import get_current_account, get_doctor_account, get_patient_account
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate
from ...schemas.common import ApiResponse
from ...models.account import Account

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post(
    "",
    response_model=ApiResponse[AppointmentResponse],
    status_code=status.HTTP_201_CREATED,
)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_account: Account = Depends(get_patient_account),
    db: Session = Depends(get_db),
):
    """Book an appointment for the authenticated patient."""
    appointment = AppointmentService(db).book_appointment(
        patient_id=current_account.id,
        doctor_id=appointment_data.doctor_id,
        appointment_date=appointment_data.appointment_date,
        appointment_time=appointment_data.appointment_time,
        duration=appointment_data.duration,
        reason=appointment_data.reason,
        notes=appointment_data.notes,
    )
    return ApiResponse[AppointmentResponse](
        message="Appointment booked successfully",
        data=AppointmentResponse.model_validate(appointment),
    )


@router.get("/patient", response_model=ApiResponse[List[AppointmentResponse]])
def get_patient_appointments(
    current_account: Account = Depends(get_patient_account),
    db: Session = Depends(get_db),
):
    appointments = AppointmentService(db).list_by_patient(current_account.id)
    return ApiResponse[List[AppointmentResponse]](
        message="Appointments retrieved successfully",
        data=[AppointmentResponse.model_validate(a) for a in appointments],
    )


@router.get("/doctor", response_model=ApiResponse[List[AppointmentResponse]])
def get_doctor_appointments(
    current_account: Account = Depends(get_doctor_account),
    db: Session = Depends(get_db),
):
    appointments = AppointmentService(db).list_by_doctor(current_account.id)
    return ApiResponse[List[AppointmentResponse]](
        message="Appointments retrieved successfully",
        data=[AppointmentResponse.model_validate(a) for a in appointments],
    )


@router.get("/{appointment_id}", response_model=ApiResponse[AppointmentResponse])
def get_appointment(
    appointment_id: int,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).get_by_id(appointment_id)
    require_participant(current_account, appointment)
    return ApiResponse[AppointmentResponse](
        message="Appointment retrieved successfully",
        data=AppointmentResponse.model_validate(appointment),
    )


@router.patch("/{appointment_id}/status", response_model=ApiResponse[AppointmentResponse])
def update_appointment_status(
    appointment_id: int,
    status_data: AppointmentStatusUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).update_status(
        appointment_id,
        status_data.status,
        current_account.id,
        current_account.role.value,
        status_data.cancellation_reason,
    )
    return ApiResponse[AppointmentResponse](
        message="Appointment status updated successfully",
        data=AppointmentResponse.model_validate(appointment),
    )
