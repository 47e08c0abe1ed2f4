from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime, time

from .auth import AccountSummary


class WeeklyAvailability(BaseModel):
    monday: bool = True
    tuesday: bool = True
    wednesday: bool = True
    thursday: bool = True
    friday: bool = True
    saturday: bool = False
    sunday: bool = False


class WorkingHours(BaseModel):
    start: time = time(9, 0)
    end: time = time(17, 0)

    @model_validator(mode="after")
    def check_window(self):
        if self.end <= self.start:
            raise ValueError("Working hours must end after they start")
        return self


class WeeklyAvailabilityUpdate(BaseModel):
    """Days left out keep their stored value."""
    monday: Optional[bool] = None
    tuesday: Optional[bool] = None
    wednesday: Optional[bool] = None
    thursday: Optional[bool] = None
    friday: Optional[bool] = None
    saturday: Optional[bool] = None
    sunday: Optional[bool] = None


class WorkingHoursUpdate(BaseModel):
    start: Optional[time] = None
    end: Optional[time] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise ValueError("Working hours must end after they start")
        return self


class DoctorProfileCreate(BaseModel):
    specialization: str = Field(min_length=1, max_length=100)
    qualification: str = Field(min_length=1, max_length=255)
    experience: int = Field(ge=0)
    consultation_fee: float = Field(ge=0)
    bio: Optional[str] = Field(default=None, max_length=1000)
    availability: WeeklyAvailability = Field(default_factory=WeeklyAvailability)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)


class DoctorProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    qualification: Optional[str] = Field(default=None, min_length=1, max_length=255)
    experience: Optional[int] = Field(default=None, ge=0)
    consultation_fee: Optional[float] = Field(default=None, ge=0)
    bio: Optional[str] = Field(default=None, max_length=1000)
    availability: Optional[WeeklyAvailabilityUpdate] = None
    working_hours: Optional[WorkingHoursUpdate] = None


class DoctorProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    specialization: str
    qualification: str
    experience: int
    consultation_fee: float
    bio: Optional[str] = None
    availability: WeeklyAvailability
    working_hours: WorkingHours
    rating: float
    total_reviews: int
    is_verified: bool
    created_at: Optional[datetime] = None
    account: AccountSummary
