"""Account management: role-specific creation, lookup, updates, merchant approval."""
from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_user_service, require_admin, require_self_or_admin
from app.models.user import User, UserRole
from app.schemas.auth import MessageResponse
from app.schemas.user import (
    AdminCreate,
    MerchantCreate,
    MerchantProfileUpdate,
    MerchantResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
    VerificationStatusResponse,
)
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    if data.role == UserRole.MERCHANT:
        raise HTTPException(status_code=400, detail="Use /users/merchant to register merchants")
    return users.create(data)


@router.post("/admin", response_model=UserResponse, status_code=201)
def create_admin(data: AdminCreate, users: UserService = Depends(get_user_service)):
    return users.create_admin(data)


@router.post("/merchant", response_model=MerchantResponse, status_code=201)
def create_merchant(data: MerchantCreate, users: UserService = Depends(get_user_service)):
    return users.create_merchant(data)


@router.get("", response_model=list[MerchantResponse])
def list_users(
    include_profile: bool = Query(False),
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    accounts = users.find_all(include_profile=include_profile)
    if include_profile:
        return accounts
    return [UserResponse.model_validate(u).model_dump() for u in accounts]


@router.get("/merchants", response_model=list[MerchantResponse])
def list_merchants(
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.find_all(include_profile=True, role=UserRole.MERCHANT)


@router.get("/verification/status/{user_id}", response_model=VerificationStatusResponse)
def verification_status(
    user_id: str,
    _caller: User = Depends(require_self_or_admin),
    users: UserService = Depends(get_user_service),
):
    return users.verification_status(user_id)


@router.get("/merchants/{user_id}", response_model=MerchantResponse)
def get_merchant(
    user_id: str,
    _caller: User = Depends(require_self_or_admin),
    users: UserService = Depends(get_user_service),
):
    return users.find_merchant(user_id)


@router.patch("/merchants/{user_id}", response_model=MerchantResponse)
def update_merchant(
    user_id: str,
    data: MerchantProfileUpdate,
    _caller: User = Depends(require_self_or_admin),
    users: UserService = Depends(get_user_service),
):
    return users.update_merchant_profile(user_id, data)


@router.patch("/merchants/{user_id}/verify", response_model=MerchantResponse)
def verify_merchant(
    user_id: str,
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    users.find_merchant(user_id)
    return users.verify_user(user_id)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    _caller: User = Depends(require_self_or_admin),
    users: UserService = Depends(get_user_service),
):
    return users.find_one(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    data: UserUpdate,
    caller: User = Depends(require_self_or_admin),
    users: UserService = Depends(get_user_service),
):
    if data.role is not None and caller.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Only admins can change roles")
    return users.update(user_id, data)


@router.patch("/{user_id}/verify", response_model=UserResponse)
def verify_user(
    user_id: str,
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.verify_user(user_id)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    _admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    users.remove(user_id)
    return MessageResponse(message="User deleted successfully")
