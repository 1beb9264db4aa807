"""Create (or promote) a portal admin account.

Usage: python -m scripts.create_admin admin@example.com "Full Name"
The password is read from the terminal.
"""
import sys
from getpass import getpass

from sqlalchemy import select

from app.core.database import SessionLocal
from app.core.security import hash_password
from app.models.user import User, UserRole
from app.schemas.auth import UserCreate
from app.services.auth import AuthService


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(__doc__)
        return 1

    email = argv[1].strip().lower()
    full_name = argv[2] if len(argv) > 2 else None
    password = getpass("Password: ")

    db = SessionLocal()
    try:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user:
            user.role = UserRole.ADMIN
            user.password_hash = hash_password(password)
            print(f"Promoted existing user {email} to admin")
        else:
            AuthService(db).register_user(
                UserCreate(email=email, full_name=full_name, password=password, role=UserRole.ADMIN)
            )
            print(f"Created admin {email}")
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
