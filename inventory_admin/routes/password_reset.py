# inventory_admin/routes/password_reset.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from inventory_admin.core.deps import (
    get_admin_repository,
    get_email_service,
    get_rate_limiter,
    get_reset_token_service,
)
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import check_password_strength, is_valid_email
from inventory_admin.services.admin_repository import AdminRepository
from inventory_admin.services.email_service import EmailService
from inventory_admin.services.rate_limiter import ResetRateLimiter
from inventory_admin.services.reset_token_service import ResetTokenService, TokenStatus

router = APIRouter(prefix="/api/admin", tags=["password-reset"])
logger = get_logger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a password reset link has been sent."
TOO_MANY_REQUESTS = "Too many password reset requests. Please try again later."
INVALID_TOKEN = "Invalid or expired reset token"
ATTEMPTS_EXCEEDED = "Maximum reset attempts exceeded. Please request a new reset link."
RESET_SUCCESS = "Password has been successfully reset. You can now log in with your new password."


class ForgotPasswordIn(BaseModel):
    email: Optional[str] = None


class ResetPasswordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")


def _token_failure_message(token_status: TokenStatus) -> str:
    if token_status is TokenStatus.EXHAUSTED:
        return ATTEMPTS_EXCEEDED
    return INVALID_TOKEN


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordIn,
    repository: AdminRepository = Depends(get_admin_repository),
    limiter: ResetRateLimiter = Depends(get_rate_limiter),
    tokens: ResetTokenService = Depends(get_reset_token_service),
    mailer: EmailService = Depends(get_email_service),
):
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a valid email address")

    admin = await repository.find_by_email(payload.email)
    if admin:
        if not limiter.check(admin):
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=TOO_MANY_REQUESTS)

        token = await tokens.issue(admin, requested_before=limiter.cutoff())
        if token is None:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=TOO_MANY_REQUESTS)
        # mail failures do not change the response
        try:
            await mailer.send_password_reset_email(admin, token)
        except Exception:
            logger.exception("Failed to send password reset email to admin %s", admin["_id"])

    # same answer whether or not the account exists
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.get("/reset-password/{token}")
async def validate_reset_token(
    token: str,
    tokens: ResetTokenService = Depends(get_reset_token_service),
):
    check = await tokens.validate(token)
    if not check.valid:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"valid": False, "message": _token_failure_message(check.status)},
        )
    return {"valid": True, "email": check.admin["email"]}


@router.post("/reset-password")
async def reset_password(
    payload: ResetPasswordIn,
    tokens: ResetTokenService = Depends(get_reset_token_service),
):
    if not payload.token or not payload.new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token and new password are required")

    problem = check_password_strength(payload.new_password)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)

    result = await tokens.redeem(payload.token, payload.new_password)
    if not result.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_token_failure_message(result.status))

    return {"message": RESET_SUCCESS}
