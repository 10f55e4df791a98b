from collections import Counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.permissions import LEVEL_EDIT, require_access
from app.core.security import AuthContext
from app.models.position_template import PositionTemplate
from app.models.schedule_slot import ScheduleSlot
from app.routers.sites import get_site_for_tenant
from app.scheduling.weekdays import month_date_range
from app.schemas.schedule import (
    MonthScheduleOut,
    PpcDayOut,
    PpcOut,
    ScheduleGenerateRequest,
    ScheduleGenerateResponse,
    ScheduleSlotOut,
)
from app.services.schedule_generator import generate_month_schedule

router = APIRouter()


@router.post("/generate", response_model=ScheduleGenerateResponse)
def generate_schedule(
    req: ScheduleGenerateRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "schedule", LEVEL_EDIT)),
):
    try:
        result = generate_month_schedule(
            db=db,
            ctx=ctx,
            site_id=req.site_id,
            year=req.year,
            month=req.month,
            overwrite=req.overwrite,
        )
    except SQLAlchemyError:
        # already rolled back and logged by the generator
        raise HTTPException(status_code=500, detail="Could not generate the monthly schedule")

    return ScheduleGenerateResponse(
        created_count=result.created_count,
        generated_count=result.generated_count,
        overwrite=result.overwrite,
        message=result.message,
    )


def _month_slots(db: Session, ctx: AuthContext, site_id: UUID, year: int, month: int, uncovered_only: bool = False):
    start, end = month_date_range(year, month)
    stmt = (
        select(ScheduleSlot, PositionTemplate.name)
        .join(
            PositionTemplate,
            PositionTemplate.position_template_id == ScheduleSlot.position_template_id,
        )
        .where(
            and_(
                ScheduleSlot.tenant_id == ctx.tenant_id,
                ScheduleSlot.site_id == site_id,
                ScheduleSlot.slot_date >= start,
                ScheduleSlot.slot_date <= end,
            )
        )
        .order_by(ScheduleSlot.slot_date, PositionTemplate.name, ScheduleSlot.slot_number)
    )
    if uncovered_only:
        stmt = stmt.where(ScheduleSlot.assigned_worker_id.is_(None))

    out: list[ScheduleSlotOut] = []
    for slot, position_name in db.execute(stmt).all():
        out.append(
            ScheduleSlotOut(
                schedule_slot_id=slot.schedule_slot_id,
                site_id=slot.site_id,
                position_template_id=slot.position_template_id,
                position_name=position_name,
                slot_number=slot.slot_number,
                slot_date=slot.slot_date,
                assigned_worker_id=slot.assigned_worker_id,
                shift_code=slot.shift_code,
                status=slot.status,
            )
        )
    return out


@router.get("/month", response_model=MonthScheduleOut)
def get_month_schedule(
    site_id: UUID = Query(..., alias="siteId"),
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "schedule")),
):
    get_site_for_tenant(db, ctx, site_id)
    return MonthScheduleOut(
        site_id=site_id,
        year=year,
        month=month,
        slots=_month_slots(db, ctx, site_id, year, month),
    )


@router.get("/ppc", response_model=PpcOut)
def get_uncovered_positions(
    site_id: UUID = Query(..., alias="siteId"),
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "ppc")),
):
    """Slots of the month still waiting for a guard (puestos por cubrir)."""
    get_site_for_tenant(db, ctx, site_id)
    slots = _month_slots(db, ctx, site_id, year, month, uncovered_only=True)
    per_day = Counter(s.slot_date for s in slots)

    return PpcOut(
        site_id=site_id,
        year=year,
        month=month,
        total_uncovered=len(slots),
        by_date=[PpcDayOut(slot_date=d, uncovered=n) for d, n in sorted(per_day.items())],
        slots=slots,
    )
