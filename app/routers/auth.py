"""Registration, login, profile, email verification, Google sign-in."""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from app.dependencies import (
    get_auth_service,
    get_current_user,
    get_google_oauth,
    get_token_issuer,
    get_user_service,
)
from app.models.user import AuthProvider, User, UserRole
from app.schemas.auth import MessageResponse, SendVerificationRequest, Token, UserLogin, UserRegister
from app.schemas.user import UserCreate, UserResponse
from app.services.auth import TokenIssuer
from app.services.oauth import GoogleOAuth, OAuthError
from app.services.sessions import AuthService
from app.services.users import UserService

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_PURPOSE = "oauth_state"
OAUTH_STATE_EXPIRE_MINUTES = 10


@router.post("/register", response_model=Token, status_code=201)
def register(
    data: UserRegister,
    users: UserService = Depends(get_user_service),
    auth: AuthService = Depends(get_auth_service),
):
    # Self-registration is always a local USER; other roles have their own endpoints
    user = users.create(
        UserCreate(
            name=data.name,
            email=data.email,
            password=data.password,
            role=UserRole.USER,
            provider=AuthProvider.LOCAL,
        )
    )
    return auth.login(user)


@router.post("/login", response_model=Token)
def login(data: UserLogin, auth: AuthService = Depends(get_auth_service)):
    return auth.authenticate(data.email, data.password)


@router.get("/profile", response_model=UserResponse)
def profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/verify-email/send", response_model=MessageResponse)
def send_verification_email(
    data: SendVerificationRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    users.send_verification_email(data.email)
    return MessageResponse(message="Verification email sent successfully")


@router.get("/verify-email", response_model=MessageResponse)
def verify_email(token: str = Query(...), users: UserService = Depends(get_user_service)):
    users.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.get("/google")
def google_login(
    oauth: GoogleOAuth = Depends(get_google_oauth),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    if not oauth.is_configured:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    state = tokens.sign({"purpose": OAUTH_STATE_PURPOSE}, expires_minutes=OAUTH_STATE_EXPIRE_MINUTES)
    return RedirectResponse(oauth.get_authorize_url(state), status_code=302)


@router.get("/google/callback", response_model=Token)
def google_callback(
    code: str = Query(...),
    state: str = Query(...),
    oauth: GoogleOAuth = Depends(get_google_oauth),
    tokens: TokenIssuer = Depends(get_token_issuer),
    auth: AuthService = Depends(get_auth_service),
):
    payload = tokens.verify(state)
    if not payload or payload.get("purpose") != OAUTH_STATE_PURPOSE:
        raise OAuthError("Invalid state parameter")
    profile = oauth.authenticate(code)
    return auth.validate_oauth_login(profile, AuthProvider.GOOGLE)
