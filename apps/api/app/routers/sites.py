from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.permissions import LEVEL_EDIT, require_access
from app.core.security import AuthContext
from app.models.site import Site
from app.schemas.sites import SiteCreate, SiteOut, SiteUpdate
from app.services.audit import record_audit

router = APIRouter()


def get_site_for_tenant(db: Session, ctx: AuthContext, site_id: UUID) -> Site:
    site = db.execute(
        select(Site).where(and_(Site.site_id == site_id, Site.tenant_id == ctx.tenant_id))
    ).scalar_one_or_none()
    if site is None:
        raise NotFoundError("Site not found")
    return site


@router.get("", response_model=list[SiteOut])
def list_sites(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "sites")),
):
    return (
        db.execute(
            select(Site)
            .where(Site.tenant_id == ctx.tenant_id)
            .order_by(Site.is_active.desc(), Site.name.asc())
        )
        .scalars()
        .all()
    )


@router.post("", response_model=SiteOut, status_code=201)
def create_site(
    payload: SiteCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "sites", LEVEL_EDIT)),
):
    site = Site(
        tenant_id=ctx.tenant_id,
        name=payload.name,
        address=payload.address,
        is_active=payload.is_active,
    )
    db.add(site)
    db.flush()
    record_audit(db, ctx, "ops.site.created", "ops_site", site.site_id, {"name": site.name})
    db.commit()
    db.refresh(site)
    return site


@router.get("/{site_id}", response_model=SiteOut)
def get_site(
    site_id: UUID,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "sites")),
):
    return get_site_for_tenant(db, ctx, site_id)


@router.patch("/{site_id}", response_model=SiteOut)
def update_site(
    site_id: UUID,
    payload: SiteUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_access("ops", "sites", LEVEL_EDIT)),
):
    site = get_site_for_tenant(db, ctx, site_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("name", "is_active"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    for key, value in changes.items():
        setattr(site, key, value)

    record_audit(db, ctx, "ops.site.updated", "ops_site", site.site_id, changes)
    db.commit()
    db.refresh(site)
    return site
