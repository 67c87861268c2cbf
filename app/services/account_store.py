"""Persistence for accounts and merchant profiles.

AccountStore is what the account services depend on. SqlAlchemyAccountStore is
the production implementation over a request-scoped Session; uniqueness
(email, provider + provider_id) is enforced by the database and surfaced as
ConflictError.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.merchant import MerchantProfile
from app.models.user import User, UserRole
from app.services.errors import ConflictError, NotFoundError

MERCHANT_PROFILE_FIELDS = ("store_name", "location", "store_number", "phone_number", "description")


class AccountStore(ABC):

    @abstractmethod
    def create_account(self, fields: dict[str, Any]) -> User:
        """Insert an account. Raises ConflictError on a duplicate email or provider identity."""

    @abstractmethod
    def create_account_with_merchant_profile(self, fields: dict[str, Any], profile_fields: dict[str, Any]) -> User:
        """Insert an account and its merchant profile in one transaction."""

    @abstractmethod
    def find_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    def find_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    def find_by_verification_token(self, token: str, now: datetime) -> User | None:
        """Account holding `token` whose expiry is strictly after `now`."""

    @abstractmethod
    def update_account(self, user_id: str, patch: dict[str, Any]) -> User:
        """Apply column values. Raises NotFoundError if absent, ConflictError on uniqueness."""

    @abstractmethod
    def update_merchant_profile(self, user_id: str, patch: dict[str, Any]) -> User: ...

    @abstractmethod
    def delete_account(self, user_id: str) -> None:
        """Delete the account; its merchant profile goes with it."""

    @abstractmethod
    def list_accounts(self, include_profile: bool = False, role: UserRole | None = None) -> list[User]: ...

    @abstractmethod
    def ping(self) -> None:
        """Raise if the backing store is unreachable."""


def _conflict_message(e: IntegrityError) -> str:
    msg = str(getattr(e, "orig", None) or e).lower()
    if "provider" in msg:
        return "An account with this provider identity already exists"
    return "An account with this email already exists"


class SqlAlchemyAccountStore(AccountStore):

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_conflict_message(e)) from e

    def create_account(self, fields: dict[str, Any]) -> User:
        user = User(**fields)
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return user

    def create_account_with_merchant_profile(self, fields: dict[str, Any], profile_fields: dict[str, Any]) -> User:
        user = User(**fields)
        user.merchant_profile = MerchantProfile(**profile_fields)
        self.db.add(user)
        # account and profile are flushed and committed together
        self._commit()
        self.db.refresh(user)
        return user

    def find_by_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_verification_token(self, token: str, now: datetime) -> User | None:
        return (
            self.db.query(User)
            .filter(User.email_verify_token == token, User.email_verify_expires > now)
            .first()
        )

    def update_account(self, user_id: str, patch: dict[str, Any]) -> User:
        user = self.find_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        for key, value in patch.items():
            setattr(user, key, value)
        self._commit()
        self.db.refresh(user)
        return user

    def update_merchant_profile(self, user_id: str, patch: dict[str, Any]) -> User:
        user = self.find_by_id(user_id)
        if not user or not user.merchant_profile:
            raise NotFoundError(f"Merchant with ID {user_id} not found")
        for key, value in patch.items():
            if key in MERCHANT_PROFILE_FIELDS:
                setattr(user.merchant_profile, key, value)
        self._commit()
        self.db.refresh(user)
        return user

    def delete_account(self, user_id: str) -> None:
        user = self.find_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        self.db.delete(user)
        self.db.commit()

    def list_accounts(self, include_profile: bool = False, role: UserRole | None = None) -> list[User]:
        q = self.db.query(User)
        if include_profile:
            q = q.options(selectinload(User.merchant_profile))
        if role is not None:
            q = q.filter(User.role == role)
        return q.order_by(User.created_at).all()

    def ping(self) -> None:
        self.db.execute(text("SELECT 1"))
