from sqlalchemy import (
    Column, Integer, String, ForeignKey, Date, Time, DateTime, Text, Index,
    CheckConstraint, Enum as SQLEnum, text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from ..core.security import ActorRole
from .account import enum_values


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a doctor's slot
ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}

_ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'confirmed')")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Participants
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)

    # Slot
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=30)

    status = Column(
        SQLEnum(AppointmentStatus, name="appointment_status", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Cancellation
    cancelled_by = Column(
        SQLEnum(ActorRole, name="cancelled_by", native_enum=False, values_callable=enum_values),
        nullable=True,
    )
    cancellation_reason = Column(String(255), nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Account", foreign_keys=[patient_id])
    doctor = relationship("Account", foreign_keys=[doctor_id])

    __table_args__ = (
        CheckConstraint("duration >= 15", name="ck_appointment_duration"),
        # At most one active booking per doctor per slot
        Index(
            "uq_active_doctor_slot",
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_appointment_patient_date", "patient_id", "appointment_date"),
        Index("ix_appointment_doctor_date", "doctor_id", "appointment_date"),
        Index("ix_appointment_status", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def can_transition_to(self, new_status: AppointmentStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[AppointmentStatus(self.status)]

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, "
            f"date='{self.appointment_date}', time='{self.appointment_time}', status='{self.status}')>"
        )
