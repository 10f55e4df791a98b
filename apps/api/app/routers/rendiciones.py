from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.permissions import LEVEL_EDIT, can_view, permissions_for, require_access, require_capability
from app.core.security import AuthContext
from app.models.rendicion import Rendicion
from app.schemas.rendiciones import (
    ApproveRequest,
    RejectRequest,
    RendicionApprovalOut,
    RendicionConfigOut,
    RendicionConfigUpdate,
    RendicionCreate,
    RendicionDetailOut,
    RendicionHistoryOut,
    RendicionOut,
)
from app.services import rendiciones as workflow

router = APIRouter()


def _detail(db: Session, rendicion: Rendicion) -> RendicionDetailOut:
    return RendicionDetailOut.model_validate(rendicion).model_copy(
        update={
            "approvals": [
                RendicionApprovalOut.model_validate(a) for a in workflow.list_approvals(db, rendicion.rendicion_id)
            ],
            "history": [
                RendicionHistoryOut.model_validate(h) for h in workflow.list_history(db, rendicion.rendicion_id)
            ],
        }
    )


# --- Config ---
@router.get("/config", response_model=RendicionConfigOut)
def get_config(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("finance", "configuracion")),
):
    return workflow.get_or_create_config(db, ctx.tenant_id)


@router.put("/config", response_model=RendicionConfigOut)
def update_config(
    payload: RendicionConfigUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_capability("rendicion_configure")),
):
    return workflow.update_config(db, ctx, payload.model_dump(exclude_unset=True))


# --- Rendiciones ---
@router.get("/rendiciones", response_model=list[RendicionOut])
def list_rendiciones(
    status: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("finance", "rendiciones")),
):
    """Everyone sees their own; users who can view all finance see the whole tenant."""
    stmt = select(Rendicion).where(Rendicion.tenant_id == ctx.tenant_id)
    if not can_view(permissions_for(ctx), "finance"):
        stmt = stmt.where(Rendicion.submitter_id == ctx.user_id)
    if status:
        stmt = stmt.where(Rendicion.status == status.upper())
    return db.execute(stmt.order_by(Rendicion.created_at.desc(), Rendicion.code.desc())).scalars().all()


@router.post("/rendiciones", response_model=RendicionOut, status_code=201)
def create_rendicion(
    payload: RendicionCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("finance", "rendiciones", LEVEL_EDIT)),
):
    return workflow.create_draft(
        db,
        ctx,
        amount=payload.amount,
        description=payload.description,
        expense_date=payload.expense_date,
    )


@router.get("/rendiciones/{rendicion_id}", response_model=RendicionDetailOut)
def get_rendicion(
    rendicion_id: UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("finance", "rendiciones")),
):
    rendicion = workflow.get_rendicion(db, ctx, rendicion_id)
    if rendicion.submitter_id != ctx.user_id and not can_view(permissions_for(ctx), "finance"):
        raise NotFoundError("Rendición not found")
    return _detail(db, rendicion)


@router.post("/rendiciones/{rendicion_id}/submit", response_model=RendicionOut)
def submit_rendicion(
    rendicion_id: UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("finance", "rendiciones", LEVEL_EDIT)),
):
    return workflow.submit(db, ctx, rendicion_id)


@router.post("/rendiciones/{rendicion_id}/approve", response_model=RendicionOut)
def approve_rendicion(
    rendicion_id: UUID,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_capability("rendicion_approve")),
):
    return workflow.approve(db, ctx, rendicion_id, comment=payload.comment)


@router.post("/rendiciones/{rendicion_id}/reject", response_model=RendicionOut)
def reject_rendicion(
    rendicion_id: UUID,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_capability("rendicion_approve")),
):
    return workflow.reject(db, ctx, rendicion_id, reason=payload.reason)
