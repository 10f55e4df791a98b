#!/usr/bin/env python3
"""
Script to create a tenant and its first owner account.
Run this after the database migration has been completed.

Usage:
    python create_admin_user.py <tenant_slug> <tenant_name> <email> <password> <name>

Example:
    python create_admin_user.py acme "Acme Security" admin@acme.cl mypassword123 "Ops Owner"
"""

import sys
from pathlib import Path

# Add the apps/api directory to the path so we can import from app
api_dir = Path(__file__).parent / "apps" / "api"
sys.path.insert(0, str(api_dir))

from sqlalchemy import select  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from app.core.database import SessionLocal  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.models.tenant import Tenant  # noqa: E402
from app.models.user import User  # noqa: E402


def create_admin_user(tenant_slug: str, tenant_name: str, email: str, password: str, name: str) -> bool:
    """Create (or reuse) the tenant and add an owner user to it."""
    db = SessionLocal()

    try:
        existing = db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
        if existing:
            print(f"❌ User with email {email} already exists!")
            return False

        tenant = db.execute(select(Tenant).where(Tenant.slug == tenant_slug)).scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=tenant_name, slug=tenant_slug)
            db.add(tenant)
            db.flush()
            print(f"✅ Tenant created: {tenant.name} ({tenant.tenant_id})")

        user = User(
            tenant_id=tenant.tenant_id,
            name=name,
            email=email.lower(),
            password_hash=get_password_hash(password),
            role="owner",
            is_active=True,
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        print("✅ Owner created successfully!")
        print(f"   User ID: {user.user_id}")
        print(f"   Name: {user.name}")
        print(f"   Email: {user.email}")
        print(f"   Tenant: {tenant.slug}")

        return True
    except SQLAlchemyError as e:
        db.rollback()
        print(f"❌ Error creating owner: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 6:
        print("Usage: python create_admin_user.py <tenant_slug> <tenant_name> <email> <password> <name>")
        print('Example: python create_admin_user.py acme "Acme Security" admin@acme.cl mypassword123 "Ops Owner"')
        sys.exit(1)

    tenant_slug, tenant_name, email, password, name = sys.argv[1:]

    if not all([tenant_slug, tenant_name, email, password, name]):
        print("❌ All arguments are required!")
        sys.exit(1)

    success = create_admin_user(tenant_slug, tenant_name, email, password, name)
    sys.exit(0 if success else 1)
