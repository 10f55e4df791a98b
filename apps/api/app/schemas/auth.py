from uuid import UUID

from pydantic import EmailStr

from app.schemas.common import ApiModel


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class LoginResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    tenant_id: UUID
    name: str
    email: str
    role: str


class MeOut(ApiModel):
    user_id: UUID
    tenant_id: UUID
    name: str
    email: str
    role: str
    modules: dict[str, str]
    submodules: dict[str, str]
    capabilities: list[str]
