from __future__ import annotations

from fastapi import APIRouter, Depends

from mealplanner.auth.deps import require_roles
from mealplanner.models.user import User
from mealplanner.policies.rbac import ADMIN, RBAC_POLICIES, accessible_policies

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/policies")
def list_policies(current_user: User = Depends(require_roles(ADMIN))) -> dict:
    return {
        "policies": {key: list(roles) for key, roles in RBAC_POLICIES.items()},
        "role": current_user.role,
        "accessible": accessible_policies(current_user.role),
    }
