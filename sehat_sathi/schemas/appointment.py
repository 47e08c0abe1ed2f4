from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime, time

from ..core.security import ActorRole
from ..models.appointment import AppointmentStatus
from .auth import AccountSummary


class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_date: date
    appointment_time: time
    duration: Optional[int] = Field(default=None, ge=15)
    reason: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = None

    @field_validator("appointment_time")
    @classmethod
    def local_time_only(cls, value: time) -> time:
        # Slots are wall-clock times in the clinic's local zone
        if value.tzinfo is not None:
            raise ValueError("Appointment time must not include a UTC offset")
        return value


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    cancellation_reason: Optional[str] = Field(default=None, max_length=255)


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: time
    duration: int
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancelled_by: Optional[ActorRole] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    patient: Optional[AccountSummary] = None
    doctor: Optional[AccountSummary] = None
