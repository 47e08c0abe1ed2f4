from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from email_validator import EmailNotValidError, validate_email
from typing import Optional, Mapping, Any
import logging

from ..models.account import Account
from ..core.security import PasswordHasher, UserRole, password_hasher
from ..core.exceptions import (
    AccountInactiveError, AccountNotFoundError, DoctorNotFoundError,
    DuplicateEmailError, InvalidCredentialsError, PatientNotFoundError,
    ValidationError,
)
from ..schemas.auth import AccountRegister, MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

# Fields an account holder may change about themselves
UPDATABLE_FIELDS = ("name", "phone", "address", "date_of_birth", "gender")


class IdentityService:
    """Storage and lookup of accounts, plus credential checks."""

    def __init__(self, db: Session, hasher: Optional[PasswordHasher] = None):
        self.db = db
        self.hasher = hasher or password_hasher

    def register_account(self, account_data: AccountRegister) -> Account:
        """Create a new patient or doctor account."""
        email = account_data.email.strip().lower()
        self._validate_registration(email, account_data.password, account_data.role)

        if self.find_by_email(email):
            raise DuplicateEmailError()

        account = Account(
            name=account_data.name,
            email=email,
            password_hash=self.hasher.hash(account_data.password),
            role=UserRole(account_data.role),
            phone=account_data.phone,
            address=account_data.address,
            date_of_birth=account_data.date_of_birth,
            gender=account_data.gender,
            is_active=True,
        )

        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.db.rollback()
            raise DuplicateEmailError()
        self.db.refresh(account)

        logger.info(f"Registered {account.role.value} account {account.id}")
        return account

    def verify_credentials(self, email: str, password: str) -> Account:
        """Return the account matching the credentials."""
        account = self.find_by_email(email)

        if not account or not self.hasher.verify(password, account.password_hash):
            logger.warning("Rejected login attempt")
            raise InvalidCredentialsError()

        if not account.is_active:
            raise AccountInactiveError()

        return account

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(
            Account.email == email.strip().lower()
        ).first()

    def find_account_by_id(self, account_id: int) -> Optional[Account]:
        return self.db.get(Account, account_id)

    def get_account(self, account_id: int) -> Account:
        account = self.find_account_by_id(account_id)
        if not account:
            raise AccountNotFoundError()
        return account

    def get_patient(self, account_id: int) -> Account:
        account = self.find_account_by_id(account_id)
        if not account or account.role != UserRole.PATIENT:
            raise PatientNotFoundError()
        return account

    def get_doctor(self, account_id: int) -> Account:
        account = self.find_account_by_id(account_id)
        if not account or account.role != UserRole.DOCTOR:
            raise DoctorNotFoundError()
        return account

    def update_account(self, account_id: int, updates: Mapping[str, Any]) -> Account:
        """Apply allow-listed profile changes; anything else is ignored."""
        account = self.get_account(account_id)

        changes = {
            field: value for field, value in updates.items()
            if field in UPDATABLE_FIELDS
        }
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("Name cannot be empty")

        for field, value in changes.items():
            setattr(account, field, value)

        self.db.commit()
        self.db.refresh(account)
        return account

    def set_active(self, account_id: int, is_active: bool) -> Account:
        """Soft-deactivate or reactivate an account."""
        account = self.get_account(account_id)
        account.is_active = is_active
        self.db.commit()
        self.db.refresh(account)

        logger.info(f"Account {account_id} {'activated' if is_active else 'deactivated'}")
        return account

    def _validate_registration(self, email: str, password: str, role) -> None:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("Please provide a valid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if role not in (UserRole.PATIENT, UserRole.DOCTOR):
            raise ValidationError('Role must be either "patient" or "doctor"')
