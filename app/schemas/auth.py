"""Auth schemas: registration, login, sessions, verification, OAuth profiles."""
from pydantic import BaseModel, EmailStr, Field
from app.models.user import UserRole
from app.schemas.user import PASSWORD_MIN_LENGTH


class UserRegister(BaseModel):
    """Self-registration. Always creates a local USER account."""
    name: str | None = None
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class SessionUser(BaseModel):
    """Public-safe summary embedded in session responses."""
    id: str
    email: str
    name: str | None = None
    role: UserRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser
    # downstream service name -> token signed with that service's secret
    service_tokens: dict[str, str] = {}


class SendVerificationRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class OAuthEmail(BaseModel):
    # Same normalization as local sign-up so both paths share one lookup key
    value: EmailStr
    verified: bool | None = None


class OAuthProfile(BaseModel):
    """Identity returned by a federated provider, normalized to one shape."""
    id: str
    display_name: str | None = None
    emails: list[OAuthEmail] = []
