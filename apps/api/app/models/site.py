import uuid
from sqlalchemy import Column, Boolean, ForeignKey, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import DateTime

from app.core.database import Base

from app.models.tenant import Tenant  # noqa: F401


class Site(Base):
    __tablename__ = "sites"

    site_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
