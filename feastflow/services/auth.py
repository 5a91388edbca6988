"""
Auth Service

Registration, login and identity lookup over the ``users`` table.
The service owns User rows; token signing and password hashing live in
``feastflow.core.security``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.core.config import Settings, get_settings
from feastflow.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from feastflow.core.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    hash_password,
    password_too_long,
    verify_password,
)
from feastflow.models import User, UserRole
from feastflow.services.audit import record_event

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Signed session token plus the account it was issued for."""
    token: str
    user: User


class AuthService:
    """Account registration, login and lookup."""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    async def _get_by_email(self, email: str, active_only: bool = False) -> Optional[User]:
        query = select(User).where(User.email == email)
        if active_only:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def _issue(self, user: User) -> AuthResult:
        token = create_access_token(user.id, user.email, user.role, settings=self.settings)
        return AuthResult(token=token, user=user)

    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        phone_number: Optional[str] = None,
        role: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """
        Create an account and sign the caller in.

        Args:
            email: Unique, compared case-sensitively as stored
            password: Plain password, stored as a salted hash
            first_name: Required
            last_name: Required
            phone_number: Optional contact number
            role: One of the UserRole values; defaults to customer
            ip_address: Client address for the audit trail

        Raises:
            ValidationError: A required field is missing, the role is unknown
                or the password is longer than bcrypt accepts
            DuplicateEmailError: The email is already registered
        """
        if not email or not password or not first_name or not last_name:
            raise ValidationError("Please provide all required fields")

        try:
            user_role = UserRole(role) if role else UserRole.CUSTOMER
        except ValueError:
            valid = [r.value for r in UserRole]
            raise ValidationError(f"Invalid role. Must be one of: {valid}")

        if password_too_long(password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        if await self._get_by_email(email) is not None:
            raise DuplicateEmailError()

        user = User(
            email=email,
            password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=user_role,
            phone_number=phone_number or None,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await self.db.rollback()
            raise DuplicateEmailError()

        record_event(self.db, "user.register", user_id=user.id, entity_type="user",
                     entity_id=user.id, ip_address=ip_address)
        await self.db.commit()

        logger.info(f"Registered user {user.id} ({user.role.value})")
        return self._issue(user)

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """
        Verify credentials and issue a session token.

        Unknown email, inactive account and wrong password all raise the
        same InvalidCredentialsError.
        """
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = await self._get_by_email(email, active_only=True)
        if user is None or not verify_password(password, user.password):
            logger.info("Rejected login attempt")
            raise InvalidCredentialsError()

        record_event(self.db, "user.login", user_id=user.id, entity_type="user",
                     entity_id=user.id, ip_address=ip_address)
        await self.db.commit()

        return self._issue(user)

    async def get_current_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def logout(self) -> None:
        """Tokens are not revoked server-side; the caller drops the cookie."""
        return None

    async def seed_default_admin(self) -> Optional[User]:
        """
        Create the configured admin account if it does not exist yet.

        Returns:
            The new admin, or None when the email is already registered
        """
        email = self.settings.default_admin_email
        if await self._get_by_email(email) is not None:
            logger.info(f"Admin account {email} already exists")
            return None

        admin = User(
            email=email,
            password=hash_password(self.settings.default_admin_password),
            first_name="Admin",
            last_name="User",
            role=UserRole.ADMIN,
        )
        self.db.add(admin)
        await self.db.commit()
        logger.info(f"✅ Default admin user created ({email})")
        return admin
