# inventory_admin/routes/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from inventory_admin.core.deps import (
    get_admin_repository,
    get_auth_service,
    get_login_events,
    require_auth,
)
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import (
    AuthNotConfiguredError,
    check_password_strength,
    verify_password,
)
from inventory_admin.models.admin import AdminSelfUpdate, AdminUpdate, CurrentAdmin
from inventory_admin.models.utils import public_admin
from inventory_admin.services.admin_repository import AdminRepository
from inventory_admin.services.auth_service import AuthService
from inventory_admin.services.login_events import LoginEventRecorder

router = APIRouter(prefix="/api/admin", tags=["auth"])
logger = get_logger(__name__)


class AdminLoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
async def admin_login(
    payload: AdminLoginIn,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    events: LoginEventRecorder = Depends(get_login_events),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")

    admin = await auth.authenticate_admin(payload.email, payload.password)
    if not admin:
        await events.record(
            payload.email, "failed",
            ip_address=ip_address, user_agent=user_agent, failure_reason="Invalid credentials",
        )
        logger.info("Failed admin login for %s", payload.email.strip().lower())
        # do not reveal whether email exists
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    try:
        token = auth.create_token_for_admin(admin)
    except AuthNotConfiguredError:
        logger.error("JWT_SECRET not configured, cannot issue admin tokens")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Authentication not configured")

    await events.record(admin["email"], "success", admin=admin, ip_address=ip_address, user_agent=user_agent)
    logger.info("Admin %s logged in", admin["_id"])

    view = public_admin(admin)
    return {
        "message": "Login successful",
        "token": token,
        "admin": {"id": view["id"], "email": view["email"], "name": view.get("name"), "role": view["role"]},
    }


@router.get("/me")
async def get_me(
    current: CurrentAdmin = Depends(require_auth),
    repository: AdminRepository = Depends(get_admin_repository),
):
    admin = await repository.find_by_id(current.id)
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return {"admin": public_admin(admin)}


@router.patch("/me")
async def update_me(
    payload: AdminSelfUpdate,
    current: CurrentAdmin = Depends(require_auth),
    repository: AdminRepository = Depends(get_admin_repository),
):
    admin = await repository.find_by_id(current.id)
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")

    changes = {}
    if payload.name is not None:
        changes["name"] = payload.name
    if payload.new_password is not None:
        if not payload.current_password or not verify_password(
            payload.current_password, admin.get("password_hash", "")
        ):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
        problem = check_password_strength(payload.new_password)
        if problem:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)
        changes["password"] = payload.new_password

    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")

    updated = await repository.update(admin["_id"], AdminUpdate(**changes))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return {"admin": public_admin(updated)}
