"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from app.models.user import User, UserRole, AuthProvider
from app.models.merchant import MerchantProfile

__all__ = [
    "User",
    "UserRole",
    "AuthProvider",
    "MerchantProfile",
]
