import os

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.services.auth_service import JWT_EXP_HOURS, Role, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])

_TOKEN_ENVS = {"dev", "local", "test"}


class TokenRequest(BaseModel):
    user_id: str
    role: str = Role.ADMIN.value


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    expires_in: int


@router.post("/token", response_model=TokenResponse)
def issue_token(payload: TokenRequest):
    """Development-only token minting; the real login flow lives elsewhere."""
    if os.getenv("ENV", "dev").lower() not in _TOKEN_ENVS:
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        token = create_access_token(user_id=payload.user_id, role=payload.role)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": JWT_EXP_HOURS * 3600,
    }
