from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DomainValidationError, NotFoundError
from app.core.logging import get_logger
from app.core.security import AuthContext
from app.models.position_template import PositionTemplate
from app.models.schedule_slot import SLOT_STATUS_PLANNED, ScheduleSlot
from app.models.site import Site
from app.scheduling.weekdays import daterange, month_date_range, weekday_key, weekday_matches
from app.services.audit import record_audit

logger = get_logger("ops.schedule")

NO_ROWS_MESSAGE = "No rows generated: check the active weekdays and active dates of the site's position templates"

SlotKey = Tuple[UUID, int, date]  # (position_template_id, slot_number, slot_date)


@dataclass(frozen=True)
class SlotDraft:
    position_template_id: UUID
    slot_number: int
    slot_date: date

    @property
    def key(self) -> SlotKey:
        return (self.position_template_id, self.slot_number, self.slot_date)


@dataclass
class GenerationResult:
    site_id: UUID
    year: int
    month: int
    overwrite: bool
    generated_count: int
    created_count: int
    message: Optional[str] = None


# ---------- helpers ----------
def template_applies(template, d: date) -> bool:
    """Weekday in mask, active_from inclusive, active_until exclusive."""
    if not weekday_matches(template.weekdays, weekday_key(d)):
        return False
    if template.active_from and d < template.active_from:
        return False
    if template.active_until and d >= template.active_until:
        return False
    return True


def expand_position_templates(templates: Iterable, year: int, month: int) -> List[SlotDraft]:
    """
    Expand recurring templates into concrete slots for one calendar month.

    Pure: no database access. Output is ordered by date, then template order,
    then slot number, and for any (template, date) the slot numbers are
    exactly 1..required_headcount.
    """
    start, end = month_date_range(year, month)
    templates = list(templates)

    drafts: List[SlotDraft] = []
    for d in daterange(start, end):
        for t in templates:
            if not template_applies(t, d):
                continue
            for slot_number in range(1, int(t.required_headcount) + 1):
                drafts.append(
                    SlotDraft(
                        position_template_id=t.position_template_id,
                        slot_number=slot_number,
                        slot_date=d,
                    )
                )
    return drafts


def _insert_ignoring_duplicates(db: Session, rows: List[dict]) -> int:
    """Insert rows, skipping keys another transaction committed first. Returns rows actually inserted."""
    # Backed by uq_schedule_slots_site_template_slot_date, so a concurrent merge cannot duplicate rows
    dialect = db.get_bind().dialect.name
    index_elements = ["site_id", "position_template_id", "slot_number", "slot_date"]
    if dialect == "postgresql":
        stmt = pg_insert(ScheduleSlot).on_conflict_do_nothing(index_elements=index_elements)
    elif dialect == "sqlite":
        stmt = sqlite_insert(ScheduleSlot).on_conflict_do_nothing(index_elements=index_elements)
    else:
        db.execute(insert(ScheduleSlot), rows)
        return len(rows)

    inserted = db.execute(stmt.returning(ScheduleSlot.schedule_slot_id), rows).scalars().all()
    return len(inserted)


def _existing_keys(db: Session, ctx: AuthContext, site_id: UUID, start: date, end: date) -> Set[SlotKey]:
    rows = db.execute(
        select(
            ScheduleSlot.position_template_id,
            ScheduleSlot.slot_number,
            ScheduleSlot.slot_date,
        ).where(
            and_(
                ScheduleSlot.tenant_id == ctx.tenant_id,
                ScheduleSlot.site_id == site_id,
                ScheduleSlot.slot_date >= start,
                ScheduleSlot.slot_date <= end,
            )
        )
    ).all()
    return {(r[0], int(r[1]), r[2]) for r in rows}


# ---------- core ----------
def generate_month_schedule(
    db: Session,
    ctx: AuthContext,
    site_id: UUID,
    year: int,
    month: int,
    overwrite: bool = False,
) -> GenerationResult:
    """
    Generate the monthly schedule (pauta mensual) of one site.

    overwrite=True  -> delete the site's slots in the month, insert the fresh set
    overwrite=False -> insert only slots missing from the month (idempotent merge)

    Delete, insert and the audit entry share one transaction.
    """
    if not 1 <= month <= 12:
        raise DomainValidationError("month must be between 1 and 12")

    site = db.execute(
        select(Site).where(and_(Site.site_id == site_id, Site.tenant_id == ctx.tenant_id))
    ).scalar_one_or_none()
    if site is None:
        raise NotFoundError("Site not found")

    templates = (
        db.execute(
            select(PositionTemplate)
            .where(
                and_(
                    PositionTemplate.tenant_id == ctx.tenant_id,
                    PositionTemplate.site_id == site_id,
                    PositionTemplate.is_active == True,  # noqa: E712
                )
            )
            .order_by(PositionTemplate.created_at, PositionTemplate.position_template_id)
        )
        .scalars()
        .all()
    )
    if not templates:
        raise DomainValidationError("No active position templates for the selected site")

    drafts = expand_position_templates(templates, year, month)
    if not drafts:
        # Nothing to write; existing rows are left alone even in overwrite mode
        logger.info("site=%s %04d-%02d: no rows generated from %d templates", site_id, year, month, len(templates))
        return GenerationResult(
            site_id=site_id,
            year=year,
            month=month,
            overwrite=overwrite,
            generated_count=0,
            created_count=0,
            message=NO_ROWS_MESSAGE,
        )

    start, end = month_date_range(year, month)

    def to_row(draft: SlotDraft) -> dict:
        return {
            "schedule_slot_id": uuid.uuid4(),
            "tenant_id": ctx.tenant_id,
            "site_id": site_id,
            "position_template_id": draft.position_template_id,
            "slot_number": draft.slot_number,
            "slot_date": draft.slot_date,
            "assigned_worker_id": None,
            "shift_code": None,
            "status": SLOT_STATUS_PLANNED,
            "created_by": ctx.user_id,
        }

    try:
        if overwrite:
            db.execute(
                delete(ScheduleSlot).where(
                    and_(
                        ScheduleSlot.tenant_id == ctx.tenant_id,
                        ScheduleSlot.site_id == site_id,
                        ScheduleSlot.slot_date >= start,
                        ScheduleSlot.slot_date <= end,
                    )
                )
            )
            rows = [to_row(d) for d in drafts]
            db.execute(insert(ScheduleSlot), rows)
            created = len(rows)
        else:
            existing = _existing_keys(db, ctx, site_id, start, end)
            rows = [to_row(d) for d in drafts if d.key not in existing]
            created = _insert_ignoring_duplicates(db, rows) if rows else 0

        record_audit(
            db,
            ctx,
            action="ops.schedule.generated",
            entity="ops_schedule",
            entity_id=site_id,
            details={
                "site_id": site_id,
                "month": month,
                "year": year,
                "overwrite": overwrite,
                "generated_rows": len(drafts),
                "created_rows": created,
            },
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to generate schedule for site=%s %04d-%02d", site_id, year, month)
        raise

    logger.info(
        "site=%s %04d-%02d overwrite=%s: generated=%d created=%d",
        site_id, year, month, overwrite, len(drafts), created,
    )
    return GenerationResult(
        site_id=site_id,
        year=year,
        month=month,
        overwrite=overwrite,
        generated_count=len(drafts),
        created_count=created,
    )
