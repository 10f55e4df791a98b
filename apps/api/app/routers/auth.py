from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging import get_logger
from app.core.permissions import permissions_for
from app.core.security import AuthContext, create_user_token, get_current_user, verify_password
from app.models.user import User
from app.schemas.auth import LoginRequest, LoginResponse, MeOut

router = APIRouter()
logger = get_logger("auth")


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Login endpoint for back-office users."""
    user = db.execute(select(User).where(User.email == req.email.lower())).scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is inactive",
        )

    # Check if user has a password set
    if not user.password_hash:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Password not set. Please contact your administrator.",
        )

    if not verify_password(req.password, user.password_hash):
        logger.warning("failed login for %s", user.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return LoginResponse(
        access_token=create_user_token(user),
        user_id=user.user_id,
        tenant_id=user.tenant_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


@router.get("/me", response_model=MeOut)
def get_current_user_info(ctx: AuthContext = Depends(get_current_user)):
    """Current user plus the permissions the UI should gate on."""
    perms = permissions_for(ctx)
    return MeOut(
        user_id=ctx.user_id,
        tenant_id=ctx.tenant_id,
        name=ctx.name,
        email=ctx.email,
        role=ctx.role,
        modules=dict(perms.modules),
        submodules=dict(perms.submodules),
        capabilities=sorted(perms.capabilities),
    )
