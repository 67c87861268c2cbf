"""Account and merchant schemas."""
import re
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.user import UserRole, AuthProvider

PASSWORD_MIN_LENGTH = 6
ADMIN_PASSWORD_MIN_LENGTH = 8
_ADMIN_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")


def _strip_required(value: str, label: str) -> str:
    s = (value or "").strip()
    if not s:
        raise ValueError(f"{label} is required.")
    return s


class UserCreate(BaseModel):
    """Generic account creation. Role and provider come from trusted callers only."""
    name: str | None = None
    email: EmailStr
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    role: UserRole = UserRole.USER
    provider: AuthProvider = AuthProvider.LOCAL
    provider_id: str | None = None


class AdminCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    admin_secret_key: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        return _strip_required(v, "Name")

    @field_validator("password")
    @classmethod
    def password_strong(cls, v: str) -> str:
        if len(v) < ADMIN_PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {ADMIN_PASSWORD_MIN_LENGTH} characters long.")
        if not _ADMIN_PASSWORD_RE.match(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number and one special character"
            )
        return v


class MerchantCreate(BaseModel):
    name: str | None = None
    email: EmailStr
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    provider: AuthProvider = AuthProvider.LOCAL
    provider_id: str | None = None

    store_name: str
    location: str
    store_number: str | None = None
    phone_number: str | None = None
    description: str | None = None

    @field_validator("store_name")
    @classmethod
    def store_name_required(cls, v: str) -> str:
        return _strip_required(v, "Store name")

    @field_validator("location")
    @classmethod
    def location_required(cls, v: str) -> str:
        return _strip_required(v, "Location")

    def profile_fields(self) -> dict:
        return self.model_dump(include={"store_name", "location", "store_number", "phone_number", "description"})


class UserUpdate(BaseModel):
    """All optional; only provided fields are updated."""
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    role: UserRole | None = None


class MerchantProfileUpdate(BaseModel):
    """All optional; only provided fields are updated."""
    store_name: str | None = None
    location: str | None = None
    store_number: str | None = None
    phone_number: str | None = None
    description: str | None = None

    @field_validator("store_name", "location")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v, "Field")


class MerchantProfileResponse(BaseModel):
    id: str
    store_name: str
    location: str
    store_number: str | None = None
    phone_number: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: str
    name: str | None = None
    email: str
    role: UserRole
    provider: AuthProvider
    provider_id: str | None = None
    is_verified: bool
    is_email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MerchantResponse(UserResponse):
    merchant_profile: MerchantProfileResponse | None = None


class VerificationStatusResponse(BaseModel):
    id: str
    role: UserRole
    is_verified: bool
    is_email_verified: bool
    meets_verification_requirement: bool
