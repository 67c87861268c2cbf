"""
Create the first admin account (no admin exists yet to approve anything).
Goes through the same checks as POST /users/admin, so ADMIN_REGISTRATION_KEY
(and ADMIN_ALLOWED_DOMAINS, if set) must be configured in .env.

Run from project root:
  python scripts/create_admin.py admin@example.com 'StrongP@ss123' "Admin Name"
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pydantic import ValidationError

from app.config import get_settings
from app.database import Base, SessionLocal, engine
from app.models import User, MerchantProfile  # noqa: F401
from app.schemas.user import AdminCreate
from app.services.account_store import SqlAlchemyAccountStore
from app.services.errors import AccountError
from app.services.notifications import MailgunNotifier
from app.services.users import UserService


def main():
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <email> <password> [name]")
        return 1
    email, password = sys.argv[1].strip(), sys.argv[2]
    name = sys.argv[3] if len(sys.argv) > 3 else "Admin"

    settings = get_settings()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users = UserService(SqlAlchemyAccountStore(db), MailgunNotifier(settings), settings)
        data = AdminCreate(name=name, email=email, password=password, admin_secret_key=settings.admin_registration_key)
        admin = users.create_admin(data)
    except ValidationError as e:
        print(f"Invalid input: {e}")
        return 1
    except AccountError as e:
        print(f"Admin not created: {e.message}")
        return 1
    finally:
        db.close()

    print(f"Created admin: {admin.email} (id={admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
