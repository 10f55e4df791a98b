import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func

from app.core.database import Base

# IMPORTANT: forces tenants table to be registered in SQLAlchemy metadata
from app.models.tenant import Tenant  # noqa: F401

class User(Base):
    __tablename__ = "users"

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id = Column(
        Uuid,
        ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=True)  # NULL for users invited but without login yet

    # owner | admin | operations | finance | viewer
    role = Column(String, nullable=False, default="viewer")
    # {"modules": {"ops": "edit"}, "submodules": {...}, "capabilities": [...]}
    permission_overrides = Column(JSON, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
