import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func

from app.core.database import Base

class Tenant(Base):
    __tablename__ = "tenants"

    tenant_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
