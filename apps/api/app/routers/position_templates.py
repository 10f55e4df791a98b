from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import DomainValidationError, NotFoundError
from app.core.permissions import LEVEL_EDIT, LEVEL_FULL, require_access
from app.core.security import AuthContext
from app.models.position_template import PositionTemplate
from app.routers.sites import get_site_for_tenant
from app.schemas.position_templates import (
    PositionTemplateCreate,
    PositionTemplateOut,
    PositionTemplateUpdate,
)
from app.services.audit import record_audit
from app.services.validators import validate_active_window, validate_time_range

router = APIRouter()


def _get_template(db: Session, ctx: AuthContext, template_id: UUID) -> PositionTemplate:
    template = db.execute(
        select(PositionTemplate).where(
            and_(
                PositionTemplate.position_template_id == template_id,
                PositionTemplate.tenant_id == ctx.tenant_id,
            )
        )
    ).scalar_one_or_none()
    if template is None:
        raise NotFoundError("Position template not found")
    return template


@router.get("", response_model=list[PositionTemplateOut])
def list_position_templates(
    site_id: Optional[UUID] = Query(default=None, alias="siteId"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "position_templates")),
):
    stmt = select(PositionTemplate).where(PositionTemplate.tenant_id == ctx.tenant_id)
    if site_id:
        stmt = stmt.where(PositionTemplate.site_id == site_id)
    stmt = stmt.order_by(PositionTemplate.is_active.desc(), PositionTemplate.created_at.desc())
    return db.execute(stmt).scalars().all()


@router.post("", response_model=PositionTemplateOut, status_code=201)
def create_position_template(
    payload: PositionTemplateCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "position_templates", LEVEL_EDIT)),
):
    site = get_site_for_tenant(db, ctx, payload.site_id)
    if not site.is_active:
        raise DomainValidationError("The site must be active to add position templates")

    template = PositionTemplate(
        tenant_id=ctx.tenant_id,
        site_id=site.site_id,
        name=payload.name,
        shift_start=payload.shift_start,
        shift_end=payload.shift_end,
        weekdays=payload.weekdays,
        required_headcount=payload.required_headcount,
        active_from=payload.active_from or date.today(),
        active_until=payload.active_until,
        is_active=payload.is_active,
        created_by=ctx.user_id,
    )
    # active_from may have been defaulted to today
    try:
        validate_active_window(template.active_from, template.active_until)
    except ValueError as e:
        raise DomainValidationError(str(e))

    db.add(template)
    db.flush()
    record_audit(
        db,
        ctx,
        "ops.position_template.created",
        "ops_position_template",
        template.position_template_id,
        {"site_id": site.site_id, "name": template.name},
    )
    db.commit()
    db.refresh(template)
    return template


@router.patch("/{template_id}", response_model=PositionTemplateOut)
def update_position_template(
    template_id: UUID,
    payload: PositionTemplateUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "position_templates", LEVEL_EDIT)),
):
    template = _get_template(db, ctx, template_id)
    changes = payload.model_dump(exclude_unset=True)

    # only the active window may be cleared with null
    for key in ("name", "shift_start", "shift_end", "weekdays", "required_headcount", "is_active"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    try:
        validate_time_range(
            changes.get("shift_start", template.shift_start),
            changes.get("shift_end", template.shift_end),
        )
        validate_active_window(
            changes.get("active_from", template.active_from),
            changes.get("active_until", template.active_until),
        )
    except ValueError as e:
        raise DomainValidationError(str(e))

    for key, value in changes.items():
        setattr(template, key, value)

    record_audit(db, ctx, "ops.position_template.updated", "ops_position_template", template_id, changes)
    db.commit()
    db.refresh(template)
    return template


@router.delete("/{template_id}", response_model=PositionTemplateOut)
def deactivate_position_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "position_templates", LEVEL_FULL)),
):
    """Soft delete: schedule slots keep referencing the template."""
    template = _get_template(db, ctx, template_id)
    template.is_active = False
    record_audit(db, ctx, "ops.position_template.deactivated", "ops_position_template", template_id)
    db.commit()
    db.refresh(template)
    return template
