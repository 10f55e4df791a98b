from typing import Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.security import AuthContext
from app.models.audit_log import AuditLog

logger = get_logger("audit")


def record_audit(
    db: Session,
    ctx: AuthContext,
    action: str,
    entity: str,
    entity_id: Optional[UUID] = None,
    details: Optional[dict] = None,
) -> AuditLog:
    """Add an audit row to the caller's transaction; it is committed (or rolled back) with it."""
    entry = AuditLog(
        tenant_id=ctx.tenant_id,
        user_id=ctx.user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=jsonable_encoder(details or {}),
    )
    db.add(entry)
    logger.info("%s %s=%s by %s", action, entity, entity_id or "-", ctx.email)
    return entry
