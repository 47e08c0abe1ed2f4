from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from pydantic import ValidationError as PydanticValidationError
from typing import List, Optional
import logging

from ..models.account import Account
from ..models.doctor import DoctorProfile
from ..core.security import UserRole
from ..core.exceptions import (
    DoctorProfileExistsError, DoctorProfileNotFoundError, ForbiddenError, ValidationError,
)
from ..schemas.doctor import DoctorProfileCreate, DoctorProfileUpdate, WeeklyAvailability, WorkingHours

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def create_profile(self, account: Account, profile_data: DoctorProfileCreate) -> DoctorProfile:
        """Create the one profile a doctor account may own."""
        if account.role != UserRole.DOCTOR:
            raise ForbiddenError("User is not a doctor")

        if self.find_by_account(account.id):
            raise DoctorProfileExistsError()

        profile = DoctorProfile(
            account_id=account.id,
            **profile_data.model_dump(mode="json"),
        )
        self.db.add(profile)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DoctorProfileExistsError()
        self.db.refresh(profile)

        logger.info(f"Created doctor profile {profile.id} for account {account.id}")
        return profile

    def find_by_account(self, account_id: int) -> Optional[DoctorProfile]:
        return self.db.query(DoctorProfile).options(
            joinedload(DoctorProfile.account)
        ).filter(DoctorProfile.account_id == account_id).first()

    def get_profile(self, account_id: int) -> DoctorProfile:
        profile = self.find_by_account(account_id)
        if not profile:
            raise DoctorProfileNotFoundError()
        return profile

    def get_by_id(self, profile_id: int) -> DoctorProfile:
        profile = self.db.query(DoctorProfile).options(
            joinedload(DoctorProfile.account)
        ).filter(DoctorProfile.id == profile_id).first()
        if not profile:
            raise DoctorProfileNotFoundError("Doctor not found")
        return profile

    def update_profile(self, account_id: int, profile_data: DoctorProfileUpdate) -> DoctorProfile:
        """Update the caller's own profile. Rating and verification stay untouched."""
        profile = self.get_profile(account_id)

        for field, value in profile_data.model_dump(exclude_unset=True, mode="json").items():
            if value is None and field != "bio":
                continue
            if field in ("availability", "working_hours"):
                value = self._merge_schedule(field, getattr(profile, field), value)
            setattr(profile, field, value)

        self.db.commit()
        self.db.refresh(profile)
        return profile

    def _merge_schedule(self, field: str, stored: Optional[dict], changes: dict) -> dict:
        """Overlay the sent keys on the stored JSON and re-validate the result."""
        merged = dict(stored or {})
        merged.update({key: value for key, value in changes.items() if value is not None})

        schema = WeeklyAvailability if field == "availability" else WorkingHours
        try:
            return schema.model_validate(merged).model_dump(mode="json")
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]["msg"])

    def list_doctors(self, specialization: Optional[str] = None) -> List[DoctorProfile]:
        """Doctors of active accounts, newest profile first."""
        query = self.db.query(DoctorProfile).join(DoctorProfile.account).options(
            joinedload(DoctorProfile.account)
        ).filter(Account.is_active.is_(True))

        if specialization:
            query = query.filter(DoctorProfile.specialization.ilike(f"%{specialization.strip()}%"))

        return query.order_by(DoctorProfile.created_at.desc(), DoctorProfile.id.desc()).all()
