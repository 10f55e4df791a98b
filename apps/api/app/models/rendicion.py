import uuid
from sqlalchemy import Column, Date, ForeignKey, Integer, Text, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import DateTime

from app.core.database import Base

from app.models.user import User  # noqa: F401


class Rendicion(Base):
    __tablename__ = "rendiciones"

    rendicion_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), nullable=False, index=True)

    code = Column(Text, nullable=False)  # REN-2024-0001
    submitter_id = Column(Uuid, ForeignKey("users.user_id"), nullable=False, index=True)

    amount = Column(Integer, nullable=False)  # CLP, no decimals
    description = Column(Text, nullable=False)
    expense_date = Column(Date, nullable=False)

    # DRAFT | SUBMITTED | IN_APPROVAL | APPROVED | REJECTED
    status = Column(Text, nullable=False, default="DRAFT")

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by_id = Column(Uuid, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_rendiciones_tenant_code"),
    )
