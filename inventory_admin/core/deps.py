# inventory_admin/core/deps.py
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import ExpiredSignatureError, JWTError
from motor.motor_asyncio import AsyncIOMotorDatabase

from inventory_admin.core.clock import Clock, get_clock
from inventory_admin.core.config import Settings, get_settings
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import decode_access_token
from inventory_admin.db.mongo import get_db
from inventory_admin.models.admin import ROLE_SUPER_ADMIN, CurrentAdmin
from inventory_admin.services.admin_repository import AdminRepository
from inventory_admin.services.auth_service import AuthService
from inventory_admin.services.email_service import EmailService
from inventory_admin.services.login_events import LoginEventRecorder
from inventory_admin.services.rate_limiter import ResetRateLimiter
from inventory_admin.services.reset_token_service import ResetTokenService

logger = get_logger(__name__)

BEARER_SCHEME = "Bearer"
INVALID_FORMAT = f"Invalid authorization format. Expected: {BEARER_SCHEME} <token>"


# --- service wiring ---------------------------------------------------------

def get_admin_repository(
    db: AsyncIOMotorDatabase = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AdminRepository:
    return AdminRepository(db, clock=clock)


def get_auth_service(
    repository: AdminRepository = Depends(get_admin_repository),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(repository, settings.JWT_SECRET)


def get_reset_token_service(
    repository: AdminRepository = Depends(get_admin_repository),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ResetTokenService:
    return ResetTokenService(
        repository,
        ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        max_attempts=settings.RESET_MAX_ATTEMPTS,
        clock=clock,
    )


def get_rate_limiter(
    settings: Settings = Depends(get_settings), clock: Clock = Depends(get_clock)
) -> ResetRateLimiter:
    return ResetRateLimiter(timedelta(minutes=settings.RESET_REQUEST_COOLDOWN_MINUTES), clock=clock)


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    return EmailService(settings)


def get_login_events(
    db: AsyncIOMotorDatabase = Depends(get_db), clock: Clock = Depends(get_clock)
) -> LoginEventRecorder:
    return LoginEventRecorder(db, clock=clock)


# --- authentication ---------------------------------------------------------

def _reject(code: int, message: str) -> HTTPException:
    return HTTPException(status_code=code, detail=message)


def verify_authorization_header(authorization: Optional[str], secret: Optional[str]) -> CurrentAdmin:
    """
    Turn an Authorization header into the caller's identity.

    Checks run in a fixed order so every failure maps to one status code:
    missing header (401), bad shape (401), no signing secret (500),
    bad signature (403), expired (401), unusable claims (401).
    """
    if authorization is None:
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Authorization header required")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise _reject(status.HTTP_401_UNAUTHORIZED, INVALID_FORMAT)
    token = parts[1]

    if not secret:
        logger.error("JWT_SECRET not configured")
        raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Authentication not configured")

    try:
        payload = decode_access_token(token, secret=secret)
    except ExpiredSignatureError:
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Token expired")
    except JWTError:
        raise _reject(status.HTTP_403_FORBIDDEN, "Invalid token")
    except Exception:
        logger.exception("Authentication error")
        raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Authentication failed")

    admin_id = payload.get("id") if isinstance(payload, dict) else None
    email = payload.get("email") if isinstance(payload, dict) else None
    if not isinstance(admin_id, str) or not admin_id or not isinstance(email, str) or not email:
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Invalid token payload")

    return CurrentAdmin(id=admin_id, email=email)


async def require_auth(request: Request, settings: Settings = Depends(get_settings)) -> CurrentAdmin:
    """Dependency for protected routes: verifies the bearer token and attaches the identity."""
    admin = verify_authorization_header(request.headers.get("Authorization"), settings.JWT_SECRET)
    request.state.admin = admin
    return admin


# --- authorization ----------------------------------------------------------

def require_role(*roles: str, message: str = "Access denied. Insufficient privileges."):
    """
    Build a dependency that lets the request through only when the stored
    admin record has one of `roles`. Must run after require_auth.
    """

    async def check_role(
        request: Request,
        repository: AdminRepository = Depends(get_admin_repository),
    ) -> Dict[str, Any]:
        current: Optional[CurrentAdmin] = getattr(request.state, "admin", None)
        if current is None:
            raise _reject(status.HTTP_401_UNAUTHORIZED, "Not authenticated")

        try:
            admin = await repository.find_by_id(current.id, projection=["role"])
        except Exception:
            logger.exception("Super admin authorization error")
            raise _reject(status.HTTP_500_INTERNAL_SERVER_ERROR, "Authorization failed")

        if not admin:
            raise _reject(status.HTTP_404_NOT_FOUND, "Admin not found")
        if admin.get("role") not in roles:
            raise _reject(status.HTTP_403_FORBIDDEN, message)
        return admin

    return check_role


require_super_admin = require_role(
    ROLE_SUPER_ADMIN, message="Access denied. Super admin privileges required."
)
