import uuid
from sqlalchemy import Column, ForeignKey, Text, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from app.core.database import Base

from app.models.rendicion import Rendicion  # noqa: F401


class RendicionHistory(Base):
    __tablename__ = "rendicion_history"

    history_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    rendicion_id = Column(Uuid, ForeignKey("rendiciones.rendicion_id", ondelete="CASCADE"), nullable=False, index=True)

    action = Column(Text, nullable=False)
    from_status = Column(Text, nullable=True)
    to_status = Column(Text, nullable=False)

    user_id = Column(Uuid, nullable=True)
    user_email = Column(Text, nullable=True)
    comment = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
