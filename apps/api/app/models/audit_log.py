import uuid
from sqlalchemy import Column, ForeignKey, Text, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from app.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    audit_log_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=True)

    action = Column(Text, nullable=False)  # e.g. "ops.schedule.generated"
    entity = Column(Text, nullable=False)
    entity_id = Column(Uuid, nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
