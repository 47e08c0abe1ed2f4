from .account import Account
from .doctor import DoctorProfile
from .appointment import Appointment, AppointmentStatus

__all__ = ["Account", "DoctorProfile", "Appointment", "AppointmentStatus"]
