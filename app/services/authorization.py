"""Role and business-verification gates. Pure functions over account fields."""
from collections.abc import Iterable

from app.models.user import User, UserRole


def has_required_role(role: UserRole, required_roles: Iterable[UserRole] | None) -> bool:
    """No required roles means the action is open to any authenticated account."""
    required = set(required_roles or ())
    if not required:
        return True
    return role in required


def meets_verification_requirement(user: User) -> bool:
    """Admins and users are approved on creation; merchants need an admin to approve them."""
    role = UserRole(user.role)
    if role == UserRole.ADMIN:
        return True
    if role == UserRole.MERCHANT:
        return bool(user.is_verified)
    if role == UserRole.USER:
        return True
    raise ValueError(f"Unhandled role: {role}")
