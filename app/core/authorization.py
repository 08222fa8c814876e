from fastapi import Depends, HTTPException, Request

from app.deps.auth import require_auth
from app.services.auth_service import Role, parse_role

__all__ = ["Role", "require_role"]

_RANK = {
    Role.EMPLOYEE: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
}


def require_role(role: Role):
    """Dependency factory: 403 unless the token's role ranks at least `role`."""

    def dependency(request: Request, claims: dict = Depends(require_auth)):
        try:
            user_role = parse_role(claims.get("role"))
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if _RANK[user_role] < _RANK[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        request.state.role = user_role.value
        return user_role

    return dependency
