from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Float, JSON, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def default_availability():
    return {day: day not in ("saturday", "sunday") for day in WEEKDAYS}


def default_working_hours():
    return {"start": "09:00:00", "end": "17:00:00"}


class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False, index=True)
    qualification = Column(String(255), nullable=False)
    experience = Column(Integer, nullable=False)
    consultation_fee = Column(Float, nullable=False)
    bio = Column(Text, nullable=True)

    # Availability
    availability = Column(JSON, nullable=False, default=default_availability)
    working_hours = Column(JSON, nullable=False, default=default_working_hours)

    # Reputation
    rating = Column(Float, nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    account = relationship("Account", back_populates="doctor_profile")

    __table_args__ = (
        CheckConstraint("experience >= 0", name="ck_doctor_experience"),
        CheckConstraint("consultation_fee >= 0", name="ck_doctor_fee"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_doctor_rating"),
    )

    def __repr__(self):
        return f"<DoctorProfile(id={self.id}, account_id={self.account_id}, specialization='{self.specialization}')>"
