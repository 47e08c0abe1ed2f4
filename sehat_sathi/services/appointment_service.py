from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from datetime import date, datetime, time
from typing import Callable, List, Optional, Union
import logging

from ..models.appointment import Appointment, AppointmentStatus, ACTIVE_STATUSES
from ..core.config import settings
from ..core.security import ActorRole
from ..core.permissions import require_ownership
from ..core.exceptions import (
    AppointmentNotFoundError, ForbiddenError, IllegalTransitionError,
    PastDateError, SlotAlreadyBookedError, ValidationError,
)
from .identity_service import IdentityService

logger = logging.getLogger(__name__)


class AppointmentService:
    """Booking, listing and status transitions for appointments.

    ``now`` returns the current local time; tests pass a fixed clock.
    """

    def __init__(self, db: Session, now: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.identity = IdentityService(db)
        self._now = now or datetime.now

    def book_appointment(
        self,
        patient_id: int,
        doctor_id: int,
        appointment_date: date,
        appointment_time: time,
        duration: Optional[int] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Book a pending appointment in a free slot."""
        self.identity.get_patient(patient_id)
        self.identity.get_doctor(doctor_id)

        if duration is None:
            duration = settings.DEFAULT_APPOINTMENT_DURATION
        if duration < settings.MIN_APPOINTMENT_DURATION:
            raise ValidationError(
                f"Minimum appointment duration is {settings.MIN_APPOINTMENT_DURATION} minutes"
            )

        if appointment_time.tzinfo is not None:
            raise ValidationError("Appointment time must not include a UTC offset")

        if datetime.combine(appointment_date, appointment_time) < self._now():
            raise PastDateError()

        if self._find_active(doctor_id, appointment_date, appointment_time):
            raise SlotAlreadyBookedError()

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            duration=duration,
            reason=reason.strip() if reason else reason,
            notes=notes.strip() if notes else notes,
            status=AppointmentStatus.PENDING,
        )
        self.db.add(appointment)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent booking took the slot between the check and the insert
            self.db.rollback()
            logger.warning(
                f"Slot conflict for doctor {doctor_id} at {appointment_date} {appointment_time}"
            )
            raise SlotAlreadyBookedError()

        logger.info(
            f"Appointment {appointment.id} booked: patient {patient_id} with doctor {doctor_id} "
            f"at {appointment_date} {appointment_time}"
        )
        return self.get_by_id(appointment.id)

    def list_by_patient(self, patient_id: int) -> List[Appointment]:
        return self._list(Appointment.patient_id == patient_id)

    def list_by_doctor(self, doctor_id: int) -> List[Appointment]:
        return self._list(Appointment.doctor_id == doctor_id)

    def get_by_id(self, appointment_id: int) -> Appointment:
        appointment = self._with_participants().filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise AppointmentNotFoundError()
        return appointment

    def update_status(
        self,
        appointment_id: int,
        new_status: Union[AppointmentStatus, str],
        caller_id: Optional[int],
        caller_role: Union[ActorRole, str],
        cancellation_reason: Optional[str] = None,
    ) -> Appointment:
        """Move an appointment along its lifecycle.

        pending -> confirmed | cancelled, confirmed -> completed | cancelled.
        completed and cancelled are terminal.
        """
        try:
            new_status = AppointmentStatus(new_status)
            caller_role = ActorRole(caller_role)
        except ValueError:
            raise ValidationError("Invalid status or role")

        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).with_for_update().first()
        if not appointment:
            raise AppointmentNotFoundError()

        if caller_role == ActorRole.PATIENT:
            require_ownership(caller_id, appointment.patient_id)
        elif caller_role == ActorRole.DOCTOR:
            require_ownership(caller_id, appointment.doctor_id)
        elif new_status != AppointmentStatus.CANCELLED:
            raise ForbiddenError("The system may only cancel appointments")

        old_status = AppointmentStatus(appointment.status)
        if not appointment.can_transition_to(new_status):
            self.db.rollback()
            raise IllegalTransitionError(
                f"Cannot change appointment from {old_status.value} to {new_status.value}"
            )

        appointment.status = new_status
        if new_status == AppointmentStatus.CANCELLED:
            appointment.cancelled_by = caller_role
            if cancellation_reason:
                appointment.cancellation_reason = cancellation_reason.strip()

        self.db.commit()

        logger.info(
            f"Appointment {appointment_id}: {old_status.value} -> {new_status.value} "
            f"by {caller_role.value}"
        )
        return self.get_by_id(appointment_id)

    def _find_active(self, doctor_id: int, appointment_date: date, appointment_time: time) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.appointment_time == appointment_time,
            Appointment.status.in_(ACTIVE_STATUSES),
        ).first()

    def _with_participants(self):
        return self.db.query(Appointment).options(
            selectinload(Appointment.patient),
            selectinload(Appointment.doctor),
        )

    def _list(self, criterion) -> List[Appointment]:
        return self._with_participants().filter(criterion).order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
        ).all()
