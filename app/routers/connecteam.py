import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.core.authorization import Role, require_role
from app.deps.connecteam import get_connecteam_client
from app.schemas.employee import (
    ConnecteamLinkRequest,
    ConnecteamLinkResponse,
    ConnecteamMatchesResponse,
    ConnecteamUserResponse,
    SyncRequest,
    SyncResponse,
)
from app.services import employee_service
from app.services.connecteam_client import (
    ConnecteamAPIError,
    ConnecteamClient,
    ConnecteamConfigError,
    ConnecteamUser,
    get_custom_field_value,
)
from app.services.timesheet_sync_service import sync_week_hours

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/connecteam", tags=["Connecteam"])


def _fetch_users(client: ConnecteamClient) -> List[ConnecteamUser]:
    try:
        return client.get_connecteam_users()
    except (ConnecteamConfigError, ConnecteamAPIError) as exc:
        logger.error("Connecteam user fetch failed", extra={"reason": str(exc)})
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _user_response(user: ConnecteamUser) -> ConnecteamUserResponse:
    return ConnecteamUserResponse(
        user_id=user.user_id,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        kiosk_code=user.kiosk_code,
        is_archived=user.is_archived,
        employee_number=get_custom_field_value(user, "Employee ID"),
        job_title=get_custom_field_value(user, "Title"),
    )


@router.post("/sync", response_model=SyncResponse)
def sync(
    payload: SyncRequest,
    client: ConnecteamClient = Depends(get_connecteam_client),
    _role=Depends(require_role(Role.ADMIN)),
):
    result = sync_week_hours(
        client,
        week_start_date=payload.week_start_date,
        clear_first=payload.clear_first,
    )
    if not result.success:
        return JSONResponse(status_code=207, content=result.to_dict())
    return result.to_dict()


@router.get("/users", response_model=List[ConnecteamUserResponse])
def list_users(
    client: ConnecteamClient = Depends(get_connecteam_client),
    _role=Depends(require_role(Role.MANAGER)),
):
    return [_user_response(u) for u in _fetch_users(client)]


@router.get("/users/matches", response_model=ConnecteamMatchesResponse)
def suggest_matches(
    client: ConnecteamClient = Depends(get_connecteam_client),
    _role=Depends(require_role(Role.MANAGER)),
):
    users = _fetch_users(client)
    employees = employee_service.list_employees()
    return {"matches": employee_service.suggest_connecteam_matches(employees, users)}


@router.post("/users/link", response_model=ConnecteamLinkResponse)
def link_users(
    payload: ConnecteamLinkRequest,
    client: ConnecteamClient = Depends(get_connecteam_client),
    _role=Depends(require_role(Role.ADMIN)),
):
    users = _fetch_users(client)
    try:
        updated = employee_service.link_connecteam_users(payload.matches, users)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"updated": updated}


@router.get("/test-connection")
def test_connection(
    client: ConnecteamClient = Depends(get_connecteam_client),
    _role=Depends(require_role(Role.ADMIN)),
):
    try:
        return client.test_connection()
    except (ConnecteamConfigError, ConnecteamAPIError) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
