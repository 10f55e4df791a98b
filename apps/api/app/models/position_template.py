import uuid
from sqlalchemy import Column, Date, Integer, Text, Boolean, ForeignKey, JSON, Uuid, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import DateTime

from app.core.database import Base

from app.models.site import Site  # noqa: F401


class PositionTemplate(Base):
    __tablename__ = "position_templates"

    position_template_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False, index=True)
    site_id = Column(Uuid, ForeignKey("sites.site_id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(Text, nullable=False)
    shift_start = Column(Text, nullable=False)  # HH:MM
    shift_end = Column(Text, nullable=False)  # HH:MM

    weekdays = Column(JSON, nullable=False)  # ["monday", "wednesday", ...]
    required_headcount = Column(Integer, nullable=False)

    active_from = Column(Date, nullable=True)  # inclusive
    active_until = Column(Date, nullable=True)  # exclusive
    is_active = Column(Boolean, nullable=False, default=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("required_headcount >= 1", name="ck_position_templates_headcount"),
    )
