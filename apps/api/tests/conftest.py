import os
import uuid

# Must be set before the app (and its settings/engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import AuthContext, create_user_token
from app.main import app
from app.models.position_template import PositionTemplate
from app.models.site import Site
from app.models.tenant import Tenant
from app.models.user import User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db():
    Base.metadata.create_all(engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_tenant(db):
    def _make(name="Acme Security", slug=None):
        tenant = Tenant(name=name, slug=slug or f"tenant-{uuid.uuid4().hex[:8]}")
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def make_user(db, tenant):
    def _make(role="owner", email=None, password_hash=None, overrides=None, is_active=True, tenant_id=None):
        user = User(
            tenant_id=tenant_id or tenant.tenant_id,
            name=f"{role.title()} User",
            email=email or f"{role}-{uuid.uuid4().hex[:6]}@acme.cl",
            password_hash=password_hash,
            role=role,
            permission_overrides=overrides,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("owner")


@pytest.fixture
def make_site(db, tenant):
    def _make(name="Planta Norte", is_active=True, tenant_id=None):
        site = Site(tenant_id=tenant_id or tenant.tenant_id, name=name, is_active=is_active)
        db.add(site)
        db.commit()
        db.refresh(site)
        return site

    return _make


@pytest.fixture
def site(make_site):
    return make_site()


@pytest.fixture
def make_template(db):
    def _make(
        site,
        weekdays,
        required_headcount=1,
        active_from=None,
        active_until=None,
        is_active=True,
        name="Portería",
    ):
        template = PositionTemplate(
            tenant_id=site.tenant_id,
            site_id=site.site_id,
            name=name,
            shift_start="08:00",
            shift_end="20:00",
            weekdays=weekdays,
            required_headcount=required_headcount,
            active_from=active_from,
            active_until=active_until,
            is_active=is_active,
        )
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    return _make


def context_for(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.user_id,
        tenant_id=user.tenant_id,
        email=user.email,
        name=user.name,
        role=user.role,
        permission_overrides=user.permission_overrides,
    )


@pytest.fixture
def ctx_for():
    return context_for


@pytest.fixture
def headers_for():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers
