import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import DomainValidationError, NotFoundError
from app.models.audit_log import AuditLog
from app.models.position_template import PositionTemplate
from app.models.schedule_slot import ScheduleSlot
from app.services import schedule_generator
from app.services.schedule_generator import (
    NO_ROWS_MESSAGE,
    expand_position_templates,
    generate_month_schedule,
)

ALL_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def template(weekdays, headcount=1, active_from=None, active_until=None):
    return SimpleNamespace(
        position_template_id=uuid.uuid4(),
        weekdays=weekdays,
        required_headcount=headcount,
        active_from=active_from,
        active_until=active_until,
    )


def slot_count(db, site):
    return db.execute(
        select(func.count()).select_from(ScheduleSlot).where(ScheduleSlot.site_id == site.site_id)
    ).scalar_one()


# ---------- expansion ----------
def test_expansion_counts_matching_days_times_headcount():
    # February 2024 starts on a Thursday: 4 Mondays, 4 Wednesdays, 4 Fridays
    drafts = expand_position_templates([template(["Mon", "Wed", "Fri"], headcount=2)], 2024, 2)

    assert len(drafts) == 24
    assert {d.slot_date.weekday() for d in drafts} == {0, 2, 4}


def test_expansion_tuesday_thursday_saturday_february_2024():
    # 4 Tuesdays + 5 Thursdays + 4 Saturdays
    drafts = expand_position_templates([template(["martes", "jueves", "sábado"], headcount=2)], 2024, 2)
    assert len(drafts) == 26


def test_expansion_slot_numbers_run_from_one_to_headcount():
    t = template(["thursday"], headcount=3)
    drafts = expand_position_templates([t], 2024, 2)

    by_date = {}
    for d in drafts:
        by_date.setdefault(d.slot_date, []).append(d.slot_number)

    assert sorted(by_date) == [date(2024, 2, d) for d in (1, 8, 15, 22, 29)]
    assert all(numbers == [1, 2, 3] for numbers in by_date.values())


def test_expansion_is_ordered_by_date_then_template():
    a = template(["monday"])
    b = template(["monday"], headcount=2)
    drafts = expand_position_templates([a, b], 2024, 2)

    assert [d.slot_date for d in drafts] == sorted(d.slot_date for d in drafts)
    first_day = [d for d in drafts if d.slot_date == date(2024, 2, 5)]
    assert [(d.position_template_id, d.slot_number) for d in first_day] == [
        (a.position_template_id, 1),
        (b.position_template_id, 1),
        (b.position_template_id, 2),
    ]


def test_expansion_active_until_is_exclusive():
    drafts = expand_position_templates([template(ALL_DAYS, active_until=date(2024, 2, 15))], 2024, 2)
    assert [d.slot_date for d in drafts] == [date(2024, 2, n) for n in range(1, 15)]

    assert expand_position_templates([template(ALL_DAYS, active_until=date(2024, 2, 1))], 2024, 2) == []


def test_expansion_active_from_is_inclusive():
    drafts = expand_position_templates([template(ALL_DAYS, active_from=date(2024, 2, 10))], 2024, 2)
    assert drafts[0].slot_date == date(2024, 2, 10)
    assert len(drafts) == 20


def test_expansion_returns_nothing_when_no_weekday_matches():
    assert expand_position_templates([template([])], 2024, 2) == []
    assert expand_position_templates([], 2024, 2) == []


def test_expansion_keys_are_unique():
    drafts = expand_position_templates([template(ALL_DAYS, headcount=4), template(ALL_DAYS, headcount=2)], 2024, 3)
    assert len({d.key for d in drafts}) == len(drafts) == 31 * 6


# ---------- generation ----------
def test_merge_inserts_missing_rows_and_is_idempotent(db, owner, site, make_template, ctx_for):
    ctx = ctx_for(owner)
    make_template(site, ["monday", "wednesday", "friday"], required_headcount=2)

    first = generate_month_schedule(db, ctx, site.site_id, 2024, 2)
    second = generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    assert (first.generated_count, first.created_count) == (24, 24)
    assert first.message is None
    assert (second.generated_count, second.created_count) == (24, 0)
    assert slot_count(db, site) == 24


def test_merge_counts_only_rows_actually_inserted(db, owner, site, make_template, ctx_for, monkeypatch):
    # rows committed by a concurrent merge after the existing-key read are skipped by the insert
    ctx = ctx_for(owner)
    make_template(site, ["monday", "wednesday", "friday"], required_headcount=2)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    monkeypatch.setattr(schedule_generator, "_existing_keys", lambda *args, **kwargs: set())
    result = generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    assert (result.generated_count, result.created_count) == (24, 0)
    assert slot_count(db, site) == 24
    entries = db.execute(
        select(AuditLog).where(AuditLog.action == "ops.schedule.generated")
    ).scalars().all()
    assert sorted(e.details["created_rows"] for e in entries) == [0, 24]


def test_merge_counts_partial_collisions(db, owner, site, make_template, ctx_for, monkeypatch):
    ctx = ctx_for(owner)
    t = make_template(site, ["monday"], required_headcount=1)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)
    t.required_headcount = 3
    db.commit()

    monkeypatch.setattr(schedule_generator, "_existing_keys", lambda *args, **kwargs: set())
    result = generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    assert result.created_count == 8
    assert slot_count(db, site) == 12


def test_merge_keeps_existing_rows_and_adds_new_slots(db, owner, site, make_template, ctx_for):
    ctx = ctx_for(owner)
    t = make_template(site, ["monday"], required_headcount=1)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    worker_id = uuid.uuid4()
    slot = db.execute(select(ScheduleSlot).where(ScheduleSlot.slot_date == date(2024, 2, 5))).scalar_one()
    slot.assigned_worker_id = worker_id
    db.commit()

    t.required_headcount = 2
    db.commit()
    result = generate_month_schedule(db, ctx, site.site_id, 2024, 2)

    assert result.created_count == 4
    assert slot_count(db, site) == 8
    db.refresh(slot)
    assert slot.assigned_worker_id == worker_id
    assert slot.slot_number == 1


def test_overwrite_replaces_the_month(db, owner, site, make_template, ctx_for):
    ctx = ctx_for(owner)
    t = make_template(site, ["monday", "wednesday", "friday"], required_headcount=2)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)
    old_ids = set(db.execute(select(ScheduleSlot.schedule_slot_id)).scalars())

    t.required_headcount = 1
    db.commit()
    result = generate_month_schedule(db, ctx, site.site_id, 2024, 2, overwrite=True)

    assert (result.generated_count, result.created_count) == (12, 12)
    assert result.overwrite is True
    new_ids = set(db.execute(select(ScheduleSlot.schedule_slot_id)).scalars())
    assert len(new_ids) == 12
    assert not old_ids & new_ids


def test_overwrite_leaves_other_months_and_sites_alone(db, owner, site, make_site, make_template, ctx_for):
    ctx = ctx_for(owner)
    other_site = make_site("Bodega Sur")
    make_template(site, ["monday"])
    make_template(other_site, ["monday"])

    generate_month_schedule(db, ctx, site.site_id, 2024, 1)
    generate_month_schedule(db, ctx, other_site.site_id, 2024, 2)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2, overwrite=True)

    jan = db.execute(
        select(func.count()).select_from(ScheduleSlot).where(
            ScheduleSlot.site_id == site.site_id, ScheduleSlot.slot_date < date(2024, 2, 1)
        )
    ).scalar_one()
    assert jan == 5
    assert slot_count(db, other_site) == 4


def test_inactive_templates_are_ignored(db, owner, site, make_template, ctx_for):
    make_template(site, ["monday"], is_active=False)

    with pytest.raises(DomainValidationError):
        generate_month_schedule(db, ctx_for(owner), site.site_id, 2024, 2)


def test_site_without_templates_is_rejected(db, owner, site, ctx_for):
    with pytest.raises(DomainValidationError):
        generate_month_schedule(db, ctx_for(owner), site.site_id, 2024, 2)


def test_unknown_site_is_not_found(db, owner, ctx_for):
    with pytest.raises(NotFoundError):
        generate_month_schedule(db, ctx_for(owner), uuid.uuid4(), 2024, 2)


def test_site_of_another_tenant_is_not_found(db, make_tenant, make_user, make_site, ctx_for):
    other = make_tenant("Other Co")
    foreign_site = make_site("Foreign", tenant_id=other.tenant_id)
    outsider = make_user("owner")

    with pytest.raises(NotFoundError):
        generate_month_schedule(db, ctx_for(outsider), foreign_site.site_id, 2024, 2)


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_month_is_rejected(db, owner, site, make_template, ctx_for, month):
    make_template(site, ["monday"])
    with pytest.raises(DomainValidationError):
        generate_month_schedule(db, ctx_for(owner), site.site_id, 2024, month)


def test_zero_rows_returns_message_and_writes_nothing(db, owner, site, make_template, ctx_for):
    ctx = ctx_for(owner)
    make_template(site, ["monday"])
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)
    audits_before = db.execute(select(func.count()).select_from(AuditLog)).scalar_one()

    # retire every template before February, then regenerate with overwrite
    for t in site_templates(db, site):
        t.active_until = date(2024, 1, 1)
    db.commit()
    result = generate_month_schedule(db, ctx, site.site_id, 2024, 2, overwrite=True)

    assert (result.generated_count, result.created_count) == (0, 0)
    assert result.message == NO_ROWS_MESSAGE
    assert slot_count(db, site) == 4
    assert db.execute(select(func.count()).select_from(AuditLog)).scalar_one() == audits_before


def test_generation_is_audited(db, owner, site, make_template, ctx_for):
    make_template(site, ["friday"], required_headcount=3)
    generate_month_schedule(db, ctx_for(owner), site.site_id, 2024, 2, overwrite=True)

    entry = db.execute(
        select(AuditLog).where(AuditLog.action == "ops.schedule.generated")
    ).scalar_one()
    assert entry.tenant_id == owner.tenant_id
    assert entry.user_id == owner.user_id
    assert entry.entity == "ops_schedule"
    assert entry.entity_id == site.site_id
    assert entry.details["site_id"] == str(site.site_id)
    assert entry.details["month"] == 2
    assert entry.details["year"] == 2024
    assert entry.details["overwrite"] is True
    assert entry.details["generated_rows"] == 12
    assert entry.details["created_rows"] == 12


def test_failure_rolls_back_delete_and_insert(db, owner, site, make_template, ctx_for, monkeypatch):
    ctx = ctx_for(owner)
    make_template(site, ["monday"], required_headcount=2)
    generate_month_schedule(db, ctx, site.site_id, 2024, 2)
    before = set(db.execute(select(ScheduleSlot.schedule_slot_id)).scalars())

    def broken_audit(*args, **kwargs):
        raise SQLAlchemyError("audit table unavailable")

    monkeypatch.setattr(schedule_generator, "record_audit", broken_audit)
    with pytest.raises(SQLAlchemyError):
        generate_month_schedule(db, ctx, site.site_id, 2024, 2, overwrite=True)

    assert set(db.execute(select(ScheduleSlot.schedule_slot_id)).scalars()) == before


def site_templates(db, site):
    return db.execute(
        select(PositionTemplate).where(PositionTemplate.site_id == site.site_id)
    ).scalars().all()
