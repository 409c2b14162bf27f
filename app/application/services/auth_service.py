"""Auth service — signup, login, identity check and restaurant onboarding.

Verification steps (email, phone, identity) are driven by their own services;
this module decides what a user may do given the steps completed so far.
"""

from typing import Optional, Protocol

import structlog
from fastapi import status
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.services.identity_service import (
    EMAIL_RE,
    PHONE_RE,
    normalize_phone,
    validate_turkish_id_format,
    validate_user_data,
)
from app.application.services.notification_service import (
    REVIEW_SUBJECT,
    NotificationService,
    format_review_email,
)
from app.application.services.token_service import TokenService
from app.config import get_settings
from app.core.clock import Clock, utc_now
from app.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
    VerificationRequiredError,
)
from app.domain.lifecycle import is_consistent, verification_state
from app.domain.models.restaurant import Restaurant
from app.domain.models.user import ConfirmationStatus, Role, User
from app.domain.repositories.restaurant_repository import RestaurantRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import AuthResult, CheckUserRequest, SignupRequest, TokenPair, UserRead
from app.domain.schemas.restaurant import RestaurantCreate
from app.infrastructure.identity_api import IdentityCheckOutcome, IdentityCheckResult

settings = get_settings()
logger = structlog.get_logger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

INVALID_CREDENTIALS = "Invalid email or password"
DEFAULT_ROLES = {
    "ADMIN": "Administrator role with full access",
    "RESTAURANT_OWNER": "Restaurant owner role",
    "USER": "Regular user role",
}


class IdentityVerifier(Protocol):
    async def verify(
        self, first_name: str, last_name: str, identity_number: str, year_of_birth: int
    ) -> IdentityCheckResult:
        ...


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def first_conflict(records: list, checks: list[tuple[str, Optional[str], str]]) -> Optional[str]:
    """Message for the first (attribute, value) pair any record already holds."""
    for attribute, value, message in checks:
        if value and any(getattr(record, attribute) == value for record in records):
            return message
    return None


class AuthService:

    def __init__(
        self,
        users: UserRepository,
        restaurants: RestaurantRepository,
        tokens: TokenService,
        notifications: NotificationService,
        identity: IdentityVerifier,
        clock: Clock = utc_now,
    ):
        self.users = users
        self.restaurants = restaurants
        self.tokens = tokens
        self.notifications = notifications
        self.identity = identity
        self.clock = clock

    def signup(self, data: SignupRequest) -> AuthResult:
        email = normalize_email(data.email)
        phone_number = normalize_phone(data.phone_number)
        identity_number = (data.identity_number or "").strip() or None

        errors = validate_user_data(
            first_name=data.first_name,
            last_name=data.last_name,
            email=email,
            phone_number=phone_number,
            year_of_birth=data.year_of_birth,
            password=data.password,
            identity_number=identity_number,
            current_year=self.clock().year,
        )
        if errors:
            raise ValidationError(details=errors)

        conflict = self._signup_conflict(email, phone_number, identity_number)
        if conflict:
            raise ConflictError(conflict)

        roles = [role for role in [self.users.get_role(settings.DEFAULT_SIGNUP_ROLE)] if role is not None]
        try:
            user = self.users.create(
                {
                    "first_name": data.first_name.strip(),
                    "last_name": data.last_name.strip(),
                    "email": email,
                    "phone_number": phone_number,
                    "identity_number": identity_number,
                    "year_of_birth": data.year_of_birth,
                    "password_hash": hash_password(data.password),
                    "confirmation_status": ConfirmationStatus.PENDING,
                    "roles": roles,
                }
            )
        except IntegrityError:
            # A concurrent signup took the email, phone or identity number first
            raise ConflictError(self._signup_conflict(email, phone_number, identity_number) or "User already exists")

        tokens = self.tokens.rotate(user)
        logger.info("User signed up", user_id=user.id)
        return AuthResult(user=UserRead.model_validate(user), tokens=tokens, roles=user.role_names)

    def _signup_conflict(self, email: str, phone_number: str, identity_number: Optional[str]) -> Optional[str]:
        return first_conflict(
            self.users.find_conflicts(email, phone_number, identity_number),
            [
                ("email", email, "Email already exists"),
                ("phone_number", phone_number, "Phone number already exists"),
                ("identity_number", identity_number, "Identity number already exists"),
            ],
        )

    def login(self, email: str, password: str) -> AuthResult:
        user = self.users.get_by_email(normalize_email(email))
        if user is None:
            # Same bcrypt cost as a real check, so timing does not reveal unknown emails
            pwd_context.dummy_verify()
        if (
            user is None
            or not verify_password(password, user.password_hash)
            or user.confirmation_status != ConfirmationStatus.APPROVED
        ):
            logger.info("Login rejected")
            raise AuthError(INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED)

        if not is_consistent(user):
            logger.warning(
                "Approved user is not fully verified",
                user_id=user.id,
                missing=verification_state(user).missing,
            )

        self.users.update(user, {"last_login_date": self.clock()})
        tokens = self.tokens.rotate(user)
        logger.info("User logged in", user_id=user.id)
        return AuthResult(user=UserRead.model_validate(user), tokens=tokens, roles=user.role_names)

    def refresh(self, refresh_token: str) -> TokenPair:
        return self.tokens.refresh(refresh_token)

    async def check_user(self, user: User, data: CheckUserRequest) -> User:
        identity_number = data.identity_number.strip()
        if not validate_turkish_id_format(identity_number):
            raise ValidationError(details=["Invalid Turkish identity number format"])

        if user.identity_checked:
            if user.identity_number == identity_number:
                return user
            raise ConflictError("Identity number is already verified for this user")

        if await run_in_threadpool(self.users.identity_number_taken, identity_number, exclude_user_id=user.id):
            raise ConflictError("Identity number already exists")

        result = await self.identity.verify(
            data.first_name or user.first_name,
            data.last_name or user.last_name,
            identity_number,
            data.year_of_birth or user.year_of_birth,
        )
        if result.outcome == IdentityCheckOutcome.NOT_VERIFIED:
            raise ValidationError(result.message)
        if not result.succeeded:
            raise UpstreamError(result.message)

        try:
            user = await run_in_threadpool(
                self.users.update, user, {"identity_number": identity_number, "identity_checked": True}
            )
        except IntegrityError:
            raise ConflictError("Identity number already exists")
        logger.info("Identity checked", user_id=user.id)
        return user

    async def save_restaurant(self, user: User, data: RestaurantCreate) -> Restaurant:
        state = verification_state(user)
        if not state.fully_verified:
            raise VerificationRequiredError(state.missing)

        if user.restaurant_id or await run_in_threadpool(self.restaurants.get_by_owner, user.id) is not None:
            raise ConflictError("User already owns a restaurant")

        # The commit in create_for_owner expires the owner; keep what is needed afterwards
        owner_id, owner_email = user.id, user.email
        name = data.name.strip()
        email = normalize_email(data.email)
        phone_number = normalize_phone(data.phone_number)

        errors = []
        if len(name) < 2:
            errors.append("Restaurant name must be at least 2 characters")
        if not EMAIL_RE.match(email):
            errors.append("Valid email address is required")
        if not PHONE_RE.match(phone_number):
            errors.append("Valid Turkish phone number is required")
        if errors:
            raise ValidationError(details=errors)

        conflict = first_conflict(
            await run_in_threadpool(self.restaurants.find_conflicts, name, email, phone_number),
            [
                ("name", name, "Restaurant name already exists"),
                ("email", email, "Restaurant email already exists"),
                ("phone_number", phone_number, "Restaurant phone number already exists"),
            ],
        )
        if conflict:
            raise ConflictError(conflict)

        try:
            restaurant = await run_in_threadpool(
                self.restaurants.create_for_owner,
                user,
                {
                    "name": name,
                    "email": email,
                    "phone_number": phone_number,
                    "address": data.address,
                    "description": data.description,
                },
            )
        except IntegrityError:
            raise ConflictError("Restaurant already exists")
        logger.info("Restaurant saved", user_id=owner_id, restaurant_id=restaurant.id)

        result = await self.notifications.send_email(owner_email, REVIEW_SUBJECT, format_review_email(restaurant.name))
        if not result.succeeded:
            logger.warning("Review email not sent", user_id=owner_id, error=result.message)
        return restaurant

    def set_confirmation_status(self, user_id: int, confirmation_status: str) -> User:
        allowed = (ConfirmationStatus.PENDING, ConfirmationStatus.APPROVED, ConfirmationStatus.REJECTED)
        if confirmation_status not in allowed:
            raise ValidationError(details=[f"Status must be one of: {', '.join(allowed)}"])

        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if confirmation_status == ConfirmationStatus.APPROVED:
            state = verification_state(user)
            if not state.fully_verified:
                raise VerificationRequiredError(state.missing)

        user = self.users.update(user, {"confirmation_status": confirmation_status})
        logger.info("Confirmation status changed", user_id=user.id, status=confirmation_status)
        return user


def seed_defaults(db: Session) -> None:
    """Create the default roles and an approved admin account if missing."""
    for name, description in DEFAULT_ROLES.items():
        if db.query(Role).filter(Role.name == name).first() is None:
            db.add(Role(name=name, description=description))
    db.commit()

    email = normalize_email(settings.ADMIN_EMAIL)
    if db.query(User).filter(User.email == email).first() is None:
        admin_role = db.query(Role).filter(Role.name == "ADMIN").first()
        db.add(
            User(
                first_name="Admin",
                last_name="User",
                email=email,
                phone_number="+905551234567",
                year_of_birth=1990,
                password_hash=hash_password(settings.ADMIN_PASSWORD),
                confirmation_status=ConfirmationStatus.APPROVED,
                email_verified=True,
                phone_verified=True,
                is_new_user=False,
                roles=[admin_role],
            )
        )
        db.commit()
        logger.info("Default admin user created", email=email)
