from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.common import ApiModel


class RendicionCreate(ApiModel):
    amount: int = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    expense_date: date


class ApproveRequest(ApiModel):
    comment: Optional[str] = Field(default=None, max_length=500)


class RejectRequest(ApiModel):
    reason: str = Field(min_length=1, max_length=500)


class RendicionApprovalOut(ApiModel):
    approver_id: UUID
    approval_order: int
    decision: Optional[str] = None
    comment: Optional[str] = None
    decided_at: Optional[datetime] = None


class RendicionHistoryOut(ApiModel):
    action: str
    from_status: Optional[str] = None
    to_status: str
    user_email: Optional[str] = None
    comment: Optional[str] = None
    details: Optional[dict] = None
    created_at: Optional[datetime] = None


class RendicionOut(ApiModel):
    rendicion_id: UUID
    code: str
    submitter_id: UUID
    amount: int
    description: str
    expense_date: date
    status: str
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class RendicionDetailOut(RendicionOut):
    approvals: list[RendicionApprovalOut] = []
    history: list[RendicionHistoryOut] = []


class RendicionConfigOut(ApiModel):
    default_approver_1_id: Optional[UUID] = None
    default_approver_2_id: Optional[UUID] = None
    max_amount: Optional[int] = None


class RendicionConfigUpdate(ApiModel):
    default_approver_1_id: Optional[UUID] = None
    default_approver_2_id: Optional[UUID] = None
    max_amount: Optional[int] = Field(default=None, gt=0)
