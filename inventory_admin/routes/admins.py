# inventory_admin/routes/admins.py
from fastapi import APIRouter, Depends, HTTPException, Query, status

from inventory_admin.core.deps import (
    get_admin_repository,
    get_login_events,
    require_auth,
    require_super_admin,
)
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import check_password_strength, is_valid_email
from inventory_admin.models.admin import AdminCreate, CurrentAdmin
from inventory_admin.models.utils import public_admin, serialize_mongo_doc, str_to_objid
from inventory_admin.services.admin_repository import AdminRepository, DuplicateAdminError
from inventory_admin.services.login_events import LoginEventRecorder

# every route here is super-admin only
router = APIRouter(
    prefix="/api/admin",
    tags=["admins"],
    dependencies=[Depends(require_auth), Depends(require_super_admin)],
)
logger = get_logger(__name__)


@router.get("/list")
async def list_admins(repository: AdminRepository = Depends(get_admin_repository)):
    admins = await repository.list_admins()
    return {"admins": [public_admin(a) for a in admins]}


@router.get("/login-events")
async def list_login_events(
    limit: int = Query(50, ge=1, le=200),
    events: LoginEventRecorder = Depends(get_login_events),
):
    rows = await events.recent(limit=limit)
    out = []
    for row in rows:
        item = serialize_mongo_doc(row)
        item["id"] = item.pop("_id", None)
        out.append(item)
    return {"events": out}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_admin(
    payload: AdminCreate,
    current: CurrentAdmin = Depends(require_auth),
    repository: AdminRepository = Depends(get_admin_repository),
):
    if not payload.email or not payload.password or not payload.name or not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email, password, and name are required")
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")
    problem = check_password_strength(payload.password)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)

    if await repository.find_by_email(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Admin with this email already exists")
    try:
        admin = await repository.create(payload.email, payload.password, payload.name, payload.role)
    except DuplicateAdminError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info("Admin %s created by %s", admin["_id"], current.id)
    return {"message": "Admin registered successfully", "admin": public_admin(admin)}


@router.delete("/{admin_id}")
async def delete_admin(
    admin_id: str,
    current: CurrentAdmin = Depends(require_auth),
    repository: AdminRepository = Depends(get_admin_repository),
):
    if str_to_objid(admin_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid admin id")
    if admin_id == current.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    deleted = await repository.delete(admin_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")

    logger.info("Admin %s deleted by %s", admin_id, current.id)
    return {"message": "Admin deleted successfully"}
