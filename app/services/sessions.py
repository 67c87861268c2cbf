"""Authentication: local credentials, OAuth federation, and session tokens."""
import logging

from app.config import Settings
from app.models.user import AuthProvider, User
from app.schemas.auth import OAuthProfile, SessionUser, Token
from app.services.account_store import AccountStore
from app.services.auth import TokenIssuer, verify_password
from app.services.errors import UnauthorizedError
from app.services.users import UserService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    def __init__(self, users: UserService, store: AccountStore, tokens: TokenIssuer, settings: Settings):
        self.users = users
        self.store = store
        self.tokens = tokens
        self.settings = settings

    def validate_user(self, email: str, password: str) -> User:
        """Same error for unknown email, federated account and wrong password."""
        user = self.store.find_by_email(email)
        if (
            not user
            or user.provider != AuthProvider.LOCAL
            or not verify_password(password, user.hashed_password)
        ):
            logger.info("Failed login attempt for %s", email)
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return user

    def session_claims(self, user: User) -> dict:
        return {"email": user.email, "sub": user.id, "role": user.role.value}

    def login(self, user: User) -> Token:
        claims = self.session_claims(user)
        service_tokens = {
            service: self.tokens.sign(claims, secret=secret)
            for service, secret in self.settings.service_token_secrets.items()
            if secret
        }
        return Token(
            access_token=self.tokens.sign(claims),
            user=SessionUser(id=user.id, email=user.email, name=user.name, role=user.role),
            service_tokens=service_tokens,
        )

    def authenticate(self, email: str, password: str) -> Token:
        return self.login(self.validate_user(email, password))

    def validate_oauth_login(self, profile: OAuthProfile, provider: AuthProvider) -> Token:
        if not profile.emails:
            raise UnauthorizedError("Email is required for authentication")
        email = profile.emails[0].value
        name = profile.display_name or email.split("@")[0] or "User"
        user = self.users.find_or_create_social_user(email, name, provider, profile.id)
        return self.login(user)
