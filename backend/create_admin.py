#!/usr/bin/env python3
"""
Create (or promote) an admin user.
Run from the backend directory: python create_admin.py admin@example.com 'secret-password'
"""
import sys

from portal.core.database import SessionLocal
from portal.core.roles import Role
from portal.core.security import hash_password
from portal.models.user import User
from portal.services.auth_service import normalize_email


def create_admin(email: str, password: str) -> None:
    db = SessionLocal()
    try:
        normalized = normalize_email(email)
        user = db.query(User).filter(User.email == normalized).first()
        if user:
            user.role = Role.admin.value
            user.password_hash = hash_password(password)
            action = "promoted to admin"
        else:
            user = User(email=normalized, password_hash=hash_password(password), role=Role.admin.value)
            db.add(user)
            action = "created"
        db.commit()
        db.refresh(user)
        print(f"User '{user.email}' {action} (id={user.id})")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: create_admin.py EMAIL PASSWORD")
        sys.exit(2)
    create_admin(sys.argv[1], sys.argv[2])
