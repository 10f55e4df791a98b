from sqlalchemy import Column, ForeignKey, Integer, Uuid

from app.core.database import Base

from app.models.user import User  # noqa: F401


class RendicionConfig(Base):
    __tablename__ = "rendicion_configs"

    tenant_id = Column(Uuid, ForeignKey("tenants.tenant_id", ondelete="CASCADE"), primary_key=True)

    default_approver_1_id = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    default_approver_2_id = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    max_amount = Column(Integer, nullable=True)  # NULL = no cap
