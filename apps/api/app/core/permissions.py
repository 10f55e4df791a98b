"""
Role-based permissions.

Every route asks the same three questions through this module:

    can_view(perms, "ops", "schedule")
    can_edit(perms, "ops", "schedule")
    can_delete(perms, "ops", "position_templates")

plus has_capability(perms, "rendicion_approve") for actions that do not map to
a module level. A user's effective permissions are the role template with the
user's stored overrides merged on top.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from fastapi import Depends

from app.core.errors import PermissionDeniedError
from app.core.security import AuthContext, get_current_user

LEVEL_NONE = "none"
LEVEL_VIEW = "view"
LEVEL_EDIT = "edit"
LEVEL_FULL = "full"

LEVELS = [LEVEL_NONE, LEVEL_VIEW, LEVEL_EDIT, LEVEL_FULL]
_RANK = {lvl: i for i, lvl in enumerate(LEVELS)}

MODULES: Dict[str, list[str]] = {
    "ops": ["sites", "position_templates", "schedule", "ppc"],
    "finance": ["rendiciones", "configuracion"],
    "config": ["users"],
}

CAPABILITIES = frozenset({"rendicion_approve", "rendicion_configure"})


@dataclass(frozen=True)
class Permissions:
    modules: Dict[str, str] = field(default_factory=dict)
    # keyed "module.submodule"; wins over the module level when present
    submodules: Dict[str, str] = field(default_factory=dict)
    capabilities: FrozenSet[str] = frozenset()


ROLE_TEMPLATES: Dict[str, Permissions] = {
    "owner": Permissions(
        modules={m: LEVEL_FULL for m in MODULES},
        capabilities=CAPABILITIES,
    ),
    "admin": Permissions(
        modules={m: LEVEL_FULL for m in MODULES},
        capabilities=CAPABILITIES,
    ),
    "operations": Permissions(
        modules={"ops": LEVEL_EDIT, "finance": LEVEL_NONE},
        submodules={"finance.rendiciones": LEVEL_EDIT},
    ),
    "finance": Permissions(
        modules={"ops": LEVEL_VIEW, "finance": LEVEL_FULL},
        capabilities=CAPABILITIES,
    ),
    "viewer": Permissions(
        modules={"ops": LEVEL_VIEW, "finance": LEVEL_VIEW},
    ),
}


def _check_level(level: str) -> str:
    if level not in _RANK:
        raise ValueError(f"Unknown permission level: {level}")
    return level


def resolve_permissions(role: str, overrides: Optional[dict] = None) -> Permissions:
    """Merge a user's stored overrides over their role template.

    Unknown roles resolve to no access at all.
    """
    base = ROLE_TEMPLATES.get(role, Permissions())
    if not overrides:
        return base

    modules = dict(base.modules)
    for module, level in (overrides.get("modules") or {}).items():
        modules[module] = _check_level(level)

    submodules = dict(base.submodules)
    for key, level in (overrides.get("submodules") or {}).items():
        submodules[key] = _check_level(level)

    capabilities = set(base.capabilities)
    capabilities.update(c for c in overrides.get("capabilities") or [] if c in CAPABILITIES)
    capabilities.difference_update(overrides.get("revoked_capabilities") or [])

    return Permissions(modules=modules, submodules=submodules, capabilities=frozenset(capabilities))


def effective_level(perms: Permissions, module: str, submodule: Optional[str] = None) -> str:
    if submodule:
        key = f"{module}.{submodule}"
        if key in perms.submodules:
            return perms.submodules[key]
    return perms.modules.get(module, LEVEL_NONE)


def _at_least(perms: Permissions, module: str, submodule: Optional[str], level: str) -> bool:
    return _RANK[effective_level(perms, module, submodule)] >= _RANK[level]


def can_view(perms: Permissions, module: str, submodule: Optional[str] = None) -> bool:
    return _at_least(perms, module, submodule, LEVEL_VIEW)


def can_edit(perms: Permissions, module: str, submodule: Optional[str] = None) -> bool:
    return _at_least(perms, module, submodule, LEVEL_EDIT)


def can_delete(perms: Permissions, module: str, submodule: Optional[str] = None) -> bool:
    return _at_least(perms, module, submodule, LEVEL_FULL)


def has_module_access(perms: Permissions, module: str) -> bool:
    if perms.modules.get(module, LEVEL_NONE) != LEVEL_NONE:
        return True
    prefix = f"{module}."
    return any(k.startswith(prefix) and v != LEVEL_NONE for k, v in perms.submodules.items())


def has_capability(perms: Permissions, capability: str) -> bool:
    return capability in perms.capabilities


def permissions_for(ctx: AuthContext) -> Permissions:
    return resolve_permissions(ctx.role, ctx.permission_overrides)


# ---------- FastAPI dependencies ----------
_CHECKS = {
    LEVEL_VIEW: can_view,
    LEVEL_EDIT: can_edit,
    LEVEL_FULL: can_delete,
}


def require_access(module: str, submodule: Optional[str] = None, level: str = LEVEL_VIEW):
    """Dependency factory: resolves the caller and rejects them with 403 below `level`."""
    check = _CHECKS[_check_level(level)]

    def dependency(ctx: AuthContext = Depends(get_current_user)) -> AuthContext:
        if not check(permissions_for(ctx), module, submodule):
            target = f"{module}.{submodule}" if submodule else module
            raise PermissionDeniedError(f"Missing {level} access to {target}")
        return ctx

    return dependency


def require_capability(capability: str):
    def dependency(ctx: AuthContext = Depends(get_current_user)) -> AuthContext:
        if not has_capability(permissions_for(ctx), capability):
            raise PermissionDeniedError(f"Missing capability: {capability}")
        return ctx

    return dependency
