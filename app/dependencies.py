"""Shared dependencies: store, services, current user, role gates."""
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.config import Settings, get_settings
from app.database import get_db
from app.models.user import User, UserRole
from app.services.account_store import AccountStore, SqlAlchemyAccountStore
from app.services.auth import TokenIssuer
from app.services.authorization import has_required_role
from app.services.notifications import MailgunNotifier, Notifier
from app.services.oauth import GoogleOAuth
from app.services.sessions import AuthService
from app.services.users import UserService

security = HTTPBearer(auto_error=False)


def get_account_store(db: Session = Depends(get_db)) -> AccountStore:
    return SqlAlchemyAccountStore(db)


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    return MailgunNotifier(settings)


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(settings)


def get_google_oauth(settings: Settings = Depends(get_settings)) -> GoogleOAuth:
    return GoogleOAuth(settings)


def get_user_service(
    store: AccountStore = Depends(get_account_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(store, notifier, settings)


def get_auth_service(
    users: UserService = Depends(get_user_service),
    store: AccountStore = Depends(get_account_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(users, store, tokens, settings)


def get_current_user(
    store: AccountStore = Depends(get_account_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    token_str = (credentials.credentials or "").strip()
    payload, _ = tokens.decode_with_error(token_str)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user = store.find_by_id(str(payload["sub"]))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of `roles` (any role if none given)."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_required_role(current_user.role, roles):
            raise HTTPException(status_code=403, detail="Forbidden resource")
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN)


def require_self_or_admin(user_id: str, current_user: User = Depends(get_current_user)) -> User:
    """For /users/{user_id} routes: the account itself or an admin."""
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden resource")
    return current_user
