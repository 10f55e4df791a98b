import uuid
from sqlalchemy import Column, Date, ForeignKey, Integer, Text, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import DateTime

from app.core.database import Base

from app.models.position_template import PositionTemplate  # noqa: F401
from app.models.site import Site  # noqa: F401

SLOT_STATUS_PLANNED = "planned"


class ScheduleSlot(Base):
    __tablename__ = "schedule_slots"

    schedule_slot_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False)
    site_id = Column(Uuid, ForeignKey("sites.site_id", ondelete="CASCADE"), nullable=False)
    position_template_id = Column(
        Uuid, ForeignKey("position_templates.position_template_id", ondelete="RESTRICT"), nullable=False
    )

    slot_number = Column(Integer, nullable=False)
    slot_date = Column(Date, nullable=False, index=True)

    assigned_worker_id = Column(Uuid, nullable=True)
    shift_code = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=SLOT_STATUS_PLANNED)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "site_id", "position_template_id", "slot_number", "slot_date",
            name="uq_schedule_slots_site_template_slot_date",
        ),
    )
