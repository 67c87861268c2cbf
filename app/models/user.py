"""Accounts: users, merchants and admins."""
from sqlalchemy import Column, String, Enum as SQLEnum, DateTime, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.utils import generate_id
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    MERCHANT = "MERCHANT"


class AuthProvider(str, enum.Enum):
    """Where the account's identity comes from. LOCAL accounts carry a password hash."""
    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_users_provider_identity"),
        Index("ix_users_email_verify", "email_verify_token", "email_verify_expires"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)  # only for provider=LOCAL
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)

    provider = Column(SQLEnum(AuthProvider), nullable=False, default=AuthProvider.LOCAL)
    provider_id = Column(String(255), nullable=True)  # subject id at the federated provider

    # Business approval (admin-driven for merchants) vs. proof of email ownership
    is_verified = Column(Boolean, default=False, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verify_token = Column(String(128), unique=True, nullable=True)
    email_verify_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    merchant_profile = relationship(
        "MerchantProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
