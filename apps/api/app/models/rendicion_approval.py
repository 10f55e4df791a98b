import uuid
from sqlalchemy import Column, ForeignKey, Integer, Text, Uuid
from sqlalchemy.types import DateTime

from app.core.database import Base

from app.models.rendicion import Rendicion  # noqa: F401


class RendicionApproval(Base):
    __tablename__ = "rendicion_approvals"

    approval_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    rendicion_id = Column(Uuid, ForeignKey("rendiciones.rendicion_id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Uuid, ForeignKey("users.user_id"), nullable=False)

    approval_order = Column(Integer, nullable=False)
    decision = Column(Text, nullable=True)  # APPROVED | REJECTED, NULL while pending
    comment = Column(Text, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
