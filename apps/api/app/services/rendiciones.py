"""
Expense report (rendición) approval workflow.

    DRAFT       --submit, approvers configured-->    SUBMITTED
    DRAFT       --submit, no approvers-->            APPROVED
    SUBMITTED   --approve, others still pending-->   IN_APPROVAL
    SUBMITTED   --approve, everyone decided-->       APPROVED
    IN_APPROVAL --approve, everyone decided-->       APPROVED
    SUBMITTED   --reject-->                          REJECTED
    IN_APPROVAL --reject-->                          REJECTED

Each transition writes a RendicionHistory row in the same transaction as the
status change.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.core.errors import (
    DomainValidationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from app.core.logging import get_logger
from app.core.security import AuthContext
from app.models.rendicion import Rendicion
from app.models.rendicion_approval import RendicionApproval
from app.models.rendicion_config import RendicionConfig
from app.models.rendicion_history import RendicionHistory
from app.models.user import User

logger = get_logger("finance.rendiciones")

STATUS_DRAFT = "DRAFT"
STATUS_SUBMITTED = "SUBMITTED"
STATUS_IN_APPROVAL = "IN_APPROVAL"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"

DECIDABLE_STATUSES = (STATUS_SUBMITTED, STATUS_IN_APPROVAL)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _add_history(
    db: Session,
    ctx: AuthContext,
    rendicion: Rendicion,
    action: str,
    from_status: Optional[str],
    to_status: str,
    comment: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    db.add(
        RendicionHistory(
            rendicion_id=rendicion.rendicion_id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            user_id=ctx.user_id,
            user_email=ctx.email,
            comment=comment,
            details=details,
            created_at=_now(),
        )
    )


# ---------- config ----------
def get_or_create_config(db: Session, tenant_id: UUID) -> RendicionConfig:
    config = db.get(RendicionConfig, tenant_id)
    if config is None:
        config = RendicionConfig(tenant_id=tenant_id)
        db.add(config)
        db.commit()
        db.refresh(config)
    return config


def update_config(db: Session, ctx: AuthContext, changes: dict) -> RendicionConfig:
    config = get_or_create_config(db, ctx.tenant_id)

    for key in ("default_approver_1_id", "default_approver_2_id"):
        approver_id = changes.get(key)
        if approver_id is None:
            continue
        approver = db.get(User, approver_id)
        if approver is None or approver.tenant_id != ctx.tenant_id or not approver.is_active:
            raise DomainValidationError(f"{key} is not an active user of this tenant")

    # compare the resulting pair, so a one-sided update is checked against the stored approver
    first = changes.get("default_approver_1_id", config.default_approver_1_id)
    second = changes.get("default_approver_2_id", config.default_approver_2_id)
    if first and first == second:
        raise DomainValidationError("Approvers must be different users")

    for key, value in changes.items():
        setattr(config, key, value)

    db.commit()
    db.refresh(config)
    return config


def approver_ids_for(config: Optional[RendicionConfig]) -> List[UUID]:
    if config is None:
        return []
    ids: List[UUID] = []
    for approver_id in (config.default_approver_1_id, config.default_approver_2_id):
        if approver_id and approver_id not in ids:
            ids.append(approver_id)
    return ids


# ---------- queries ----------
def get_rendicion(db: Session, ctx: AuthContext, rendicion_id: UUID) -> Rendicion:
    rendicion = db.execute(
        select(Rendicion).where(
            and_(Rendicion.rendicion_id == rendicion_id, Rendicion.tenant_id == ctx.tenant_id)
        )
    ).scalar_one_or_none()
    if rendicion is None:
        raise NotFoundError("Rendición not found")
    return rendicion


def list_approvals(db: Session, rendicion_id: UUID) -> List[RendicionApproval]:
    return (
        db.execute(
            select(RendicionApproval)
            .where(RendicionApproval.rendicion_id == rendicion_id)
            .order_by(RendicionApproval.approval_order)
        )
        .scalars()
        .all()
    )


def list_history(db: Session, rendicion_id: UUID) -> List[RendicionHistory]:
    return (
        db.execute(
            select(RendicionHistory)
            .where(RendicionHistory.rendicion_id == rendicion_id)
            .order_by(RendicionHistory.created_at, RendicionHistory.history_id)
        )
        .scalars()
        .all()
    )


def next_code(db: Session, tenant_id: UUID, year: int) -> str:
    """Sequential per tenant and year: REN-2024-0001, REN-2024-0002, ..."""
    prefix = f"REN-{year}-"
    codes = db.execute(
        select(Rendicion.code).where(
            and_(Rendicion.tenant_id == tenant_id, Rendicion.code.startswith(prefix))
        )
    ).scalars()

    # numeric max: past 9999 the codes no longer sort as strings
    last = 0
    for code in codes:
        suffix = code[len(prefix):]
        if suffix.isdigit():
            last = max(last, int(suffix))
    return f"{prefix}{last + 1:04d}"


# ---------- transitions ----------
def create_draft(
    db: Session,
    ctx: AuthContext,
    amount: int,
    description: str,
    expense_date: date,
) -> Rendicion:
    if amount <= 0:
        raise DomainValidationError("amount must be positive")

    config = db.get(RendicionConfig, ctx.tenant_id)
    if config is not None and config.max_amount is not None and amount > config.max_amount:
        raise DomainValidationError(f"amount exceeds the configured maximum of {config.max_amount}")

    rendicion = Rendicion(
        tenant_id=ctx.tenant_id,
        code=next_code(db, ctx.tenant_id, expense_date.year),
        submitter_id=ctx.user_id,
        amount=amount,
        description=description,
        expense_date=expense_date,
        status=STATUS_DRAFT,
    )
    db.add(rendicion)
    db.flush()
    _add_history(db, ctx, rendicion, "CREATED", None, STATUS_DRAFT)
    db.commit()
    db.refresh(rendicion)
    return rendicion


def submit(db: Session, ctx: AuthContext, rendicion_id: UUID) -> Rendicion:
    rendicion = get_rendicion(db, ctx, rendicion_id)
    if rendicion.submitter_id != ctx.user_id:
        # Someone else's draft is invisible to the caller
        raise NotFoundError("Rendición not found")
    if rendicion.status != STATUS_DRAFT:
        raise InvalidTransitionError(f"Can only submit from DRAFT (current: {rendicion.status})")

    approver_ids = approver_ids_for(db.get(RendicionConfig, ctx.tenant_id))
    target = STATUS_SUBMITTED if approver_ids else STATUS_APPROVED
    now = _now()

    rendicion.status = target
    rendicion.submitted_at = now
    if target == STATUS_APPROVED:
        rendicion.approved_at = now

    for order, approver_id in enumerate(approver_ids, start=1):
        db.add(
            RendicionApproval(
                rendicion_id=rendicion.rendicion_id,
                approver_id=approver_id,
                approval_order=order,
            )
        )

    _add_history(
        db,
        ctx,
        rendicion,
        "SUBMITTED",
        STATUS_DRAFT,
        target,
        comment=(
            f"Sent to {len(approver_ids)} approver(s)"
            if approver_ids
            else "Approved automatically (no approvers configured)"
        ),
    )
    db.commit()
    db.refresh(rendicion)

    if approver_ids:
        logger.info("%s submitted by %s; notifying approvers %s", rendicion.code, ctx.email, approver_ids)
    return rendicion


def approve(db: Session, ctx: AuthContext, rendicion_id: UUID, comment: Optional[str] = None) -> Rendicion:
    rendicion = get_rendicion(db, ctx, rendicion_id)
    if rendicion.status not in DECIDABLE_STATUSES:
        raise InvalidTransitionError(
            f"Can only approve in SUBMITTED or IN_APPROVAL (current: {rendicion.status})"
        )

    approvals = list_approvals(db, rendicion.rendicion_id)
    mine = next((a for a in approvals if a.approver_id == ctx.user_id), None)
    if mine is None:
        raise PermissionDeniedError("You are not an approver of this rendición")
    if mine.decision:
        raise InvalidTransitionError("You have already decided on this rendición")

    now = _now()
    mine.decision = STATUS_APPROVED
    mine.comment = comment
    mine.decided_at = now

    pending = [a for a in approvals if a.approval_id != mine.approval_id and not a.decision]
    fully_approved = not pending
    from_status = rendicion.status
    rendicion.status = STATUS_APPROVED if fully_approved else STATUS_IN_APPROVAL
    if fully_approved:
        rendicion.approved_at = now

    _add_history(
        db,
        ctx,
        rendicion,
        "APPROVED",
        from_status,
        rendicion.status,
        comment=comment,
        details={"fully_approved": True} if fully_approved else {"partial_approval": True, "remaining": len(pending)},
    )
    db.commit()
    db.refresh(rendicion)

    if fully_approved:
        logger.info("%s fully approved by %s; notifying submitter", rendicion.code, ctx.email)
    return rendicion


def reject(db: Session, ctx: AuthContext, rendicion_id: UUID, reason: str) -> Rendicion:
    if not reason or not reason.strip():
        raise DomainValidationError("A rejection reason is required")

    rendicion = get_rendicion(db, ctx, rendicion_id)
    if rendicion.status not in DECIDABLE_STATUSES:
        raise InvalidTransitionError(
            f"Can only reject in SUBMITTED or IN_APPROVAL (current: {rendicion.status})"
        )

    now = _now()
    mine = next((a for a in list_approvals(db, rendicion.rendicion_id) if a.approver_id == ctx.user_id), None)
    if mine is not None:
        mine.decision = STATUS_REJECTED
        mine.comment = reason
        mine.decided_at = now

    from_status = rendicion.status
    rendicion.status = STATUS_REJECTED
    rendicion.rejected_at = now
    rendicion.rejected_by_id = ctx.user_id
    rendicion.rejection_reason = reason

    _add_history(db, ctx, rendicion, "REJECTED", from_status, STATUS_REJECTED, comment=reason)
    db.commit()
    db.refresh(rendicion)

    logger.info("%s rejected by %s", rendicion.code, ctx.email)
    return rendicion
