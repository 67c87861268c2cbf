"""Account lifecycle: creation per role, email verification, merchant approval, updates."""
from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from app.config import Settings
from app.models.user import AuthProvider, User, UserRole
from app.schemas.user import AdminCreate, MerchantCreate, MerchantProfileUpdate, UserCreate, UserUpdate
from app.services.account_store import AccountStore
from app.services.auth import get_password_hash
from app.services.authorization import meets_verification_requirement
from app.services.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    NotificationError,
    UnauthorizedError,
)
from app.services.notifications import Notifier
from app.utils import utc_now

logger = logging.getLogger(__name__)

# 32 bytes -> 256 bits, hex encoded
VERIFICATION_TOKEN_BYTES = 32

# (is_verified, is_email_verified) for a freshly created account
_VERIFICATION_DEFAULTS: dict[UserRole, tuple[bool, bool]] = {
    UserRole.ADMIN: (True, True),
    UserRole.USER: (True, False),
    UserRole.MERCHANT: (False, False),
}


def verification_defaults(role: UserRole) -> tuple[bool, bool]:
    return _VERIFICATION_DEFAULTS[UserRole(role)]


def generate_verification_token() -> str:
    return secrets.token_hex(VERIFICATION_TOKEN_BYTES)


class UserService:
    def __init__(
        self,
        store: AccountStore,
        notifier: Notifier,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.notifier = notifier
        self.settings = settings
        self.clock = clock

    def _hash(self, password: str) -> str:
        return get_password_hash(password, rounds=self.settings.bcrypt_rounds)

    def _account_fields(
        self,
        *,
        name: str | None,
        email: str,
        role: UserRole,
        provider: AuthProvider,
        provider_id: str | None,
        password: str | None,
    ) -> dict:
        is_verified, is_email_verified = verification_defaults(role)
        fields = {
            "name": name,
            "email": email,
            "role": role,
            "provider": provider,
            "provider_id": provider_id,
            "is_verified": is_verified,
            "is_email_verified": is_email_verified,
        }
        # Federated accounts never carry a credential hash
        if provider == AuthProvider.LOCAL and password:
            fields["hashed_password"] = self._hash(password)
        return fields

    def _send_verification_after_signup(self, user: User) -> None:
        """Account creation stands even if the message cannot be delivered; a resend overwrites the token."""
        try:
            self.send_verification_email(user.email)
        except NotificationError as e:
            logger.warning("Account %s created but verification email failed: %s", user.id, e.message)

    # Creation

    def create(self, data: UserCreate) -> User:
        fields = self._account_fields(
            name=data.name,
            email=data.email,
            role=data.role,
            provider=data.provider,
            provider_id=data.provider_id,
            password=data.password,
        )
        user = self.store.create_account(fields)
        logger.info("Created %s account %s (provider=%s)", user.role.value, user.id, user.provider.value)
        if user.role != UserRole.ADMIN:
            self._send_verification_after_signup(user)
        return user

    def _admin_key_matches(self, key: str) -> bool:
        expected = self.settings.admin_registration_key
        if not expected:
            return False
        return secrets.compare_digest(key.encode("utf-8"), expected.encode("utf-8"))

    def create_admin(self, data: AdminCreate) -> User:
        if not self._admin_key_matches(data.admin_secret_key):
            raise UnauthorizedError("Invalid admin registration key")
        allowed = self.settings.admin_allowed_domains_list
        if allowed:
            domain = data.email.rsplit("@", 1)[-1].lower()
            if domain not in allowed:
                raise UnauthorizedError("Email domain is not allowed for admin registration")
        if self.store.find_by_email(data.email):
            raise UnauthorizedError("Email already registered")
        fields = self._account_fields(
            name=data.name,
            email=data.email,
            role=UserRole.ADMIN,
            provider=AuthProvider.LOCAL,
            provider_id=None,
            password=data.password,
        )
        user = self.store.create_account(fields)
        logger.info("Created ADMIN account %s", user.id)
        return user

    def create_merchant(self, data: MerchantCreate) -> User:
        fields = self._account_fields(
            name=data.name,
            email=data.email,
            role=UserRole.MERCHANT,
            provider=data.provider,
            provider_id=data.provider_id,
            password=data.password,
        )
        user = self.store.create_account_with_merchant_profile(fields, data.profile_fields())
        logger.info("Created MERCHANT account %s (store=%s)", user.id, user.merchant_profile.store_name)
        self._send_verification_after_signup(user)
        return user

    # Lookup

    def find_all(self, include_profile: bool = False, role: UserRole | None = None) -> list[User]:
        return self.store.list_accounts(include_profile=include_profile, role=role)

    def find_one(self, user_id: str) -> User:
        user = self.store.find_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    def find_merchant(self, user_id: str) -> User:
        user = self.find_one(user_id)
        if user.role != UserRole.MERCHANT:
            raise NotFoundError(f"Merchant with ID {user_id} not found")
        return user

    def find_by_email(self, email: str) -> User | None:
        return self.store.find_by_email(email)

    # Mutation

    def update(self, user_id: str, data: UserUpdate) -> User:
        user = self.find_one(user_id)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        password = patch.pop("password", None)
        if password is not None and user.provider == AuthProvider.LOCAL:
            patch["hashed_password"] = self._hash(password)
        new_role = patch.get("role")
        if new_role is not None and new_role != user.role:
            if UserRole.MERCHANT in (new_role, user.role):
                raise ConflictError("Merchant role is managed through merchant registration")
        return self.store.update_account(user.id, patch)

    def update_merchant_profile(self, user_id: str, data: MerchantProfileUpdate) -> User:
        user = self.find_merchant(user_id)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        if not patch:
            return user
        return self.store.update_merchant_profile(user.id, patch)

    def remove(self, user_id: str) -> None:
        user = self.find_one(user_id)
        self.store.delete_account(user.id)
        logger.info("Deleted account %s", user.id)

    # Verification

    def send_verification_email(self, email: str) -> None:
        user = self.store.find_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        token = generate_verification_token()
        expires = self.clock() + timedelta(hours=self.settings.email_verification_expire_hours)
        # Overwrites any outstanding token; persisted before delivery so a resend is the retry path
        self.store.update_account(user.id, {"email_verify_token": token, "email_verify_expires": expires})
        logger.info("Issued email verification token for account %s", user.id)
        if not self.notifier.send_verification_email(user.email, user.name or "User", token):
            raise NotificationError()

    def verify_email(self, token: str) -> User:
        if not token:
            raise InvalidTokenError()
        user = self.store.find_by_verification_token(token, self.clock())
        if not user:
            raise InvalidTokenError()
        user = self.store.update_account(
            user.id,
            {"email_verify_token": None, "email_verify_expires": None, "is_email_verified": True},
        )
        logger.info("Email verified for account %s", user.id)
        return user

    def verify_user(self, user_id: str) -> User:
        user = self.find_one(user_id)
        if user.is_verified:
            return user
        user = self.store.update_account(user.id, {"is_verified": True})
        logger.info("Business verification approved for account %s", user.id)
        return user

    def verification_status(self, user_id: str) -> dict:
        user = self.find_one(user_id)
        return {
            "id": user.id,
            "role": user.role,
            "is_verified": user.is_verified,
            "is_email_verified": user.is_email_verified,
            "meets_verification_requirement": meets_verification_requirement(user),
        }

    # Federated identities

    def find_or_create_social_user(
        self,
        email: str,
        name: str,
        provider: AuthProvider,
        provider_id: str,
    ) -> User:
        user = self.store.find_by_email(email)
        if not user:
            fields = self._account_fields(
                name=name,
                email=email,
                role=UserRole.USER,
                provider=provider,
                provider_id=provider_id,
                password=None,
            )
            user = self.store.create_account(fields)
            logger.info("Created USER account %s from %s sign-in", user.id, provider.value)
            return user

        if user.provider == provider and user.provider_id == provider_id:
            return user

        # Email match alone re-links the account to this provider identity
        if not self.settings.oauth_relink_existing_accounts:
            raise UnauthorizedError("This email is registered with a different sign-in method")
        if user.role == UserRole.ADMIN:
            logger.warning("Refused %s sign-in re-link for ADMIN account %s", provider.value, user.id)
            raise UnauthorizedError("Admin accounts cannot be linked to another sign-in method")
        logger.warning(
            "Re-linking account %s from %s to %s sign-in",
            user.id, user.provider.value, provider.value,
        )
        patch = {"provider": provider, "provider_id": provider_id}
        if provider != AuthProvider.LOCAL:
            patch["hashed_password"] = None
        return self.store.update_account(user.id, patch)
