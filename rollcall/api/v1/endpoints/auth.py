"""Authentication endpoints."""
from fastapi import APIRouter, HTTPException, Response

from rollcall.schemas import AdminLoginRequest, SuccessResponse
from rollcall.core.security import create_admin_token, verify_admin_password
from rollcall.core.constants import ADMIN_COOKIE_NAME, DEFAULT_ACTOR_NAME
from rollcall.core.logging_config import get_logger
from rollcall.core import config

logger = get_logger(__name__)
router = APIRouter()


@router.post("/admin/login", response_model=SuccessResponse)
async def admin_login(request: AdminLoginRequest, response: Response) -> SuccessResponse:
    """
    Authenticate a staff member and set the JWT in an httpOnly cookie.

    The optional ``name`` is stored in the token and becomes the actor of
    every audit entry written with it.

    Example:
        Request:
            POST /api/v1/auth/admin/login
            {
                "password": "your-secure-password",
                "name": "Front Desk"
            }

        Response (200):
            {
                "success": true,
                "message": "Logged in successfully"
            }
            Set-Cookie: admin_token=eyJhbGc...; HttpOnly; SameSite=Lax
    """
    if not verify_admin_password(request.password):
        logger.warning("admin_login_failed")
        raise HTTPException(status_code=401, detail="Invalid password")

    access_token = create_admin_token(request.name)

    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=config.settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    logger.info("admin_logged_in", actor=request.name or DEFAULT_ACTOR_NAME)
    return SuccessResponse(success=True, message="Logged in successfully")


@router.post("/admin/logout", response_model=SuccessResponse)
async def admin_logout(response: Response) -> SuccessResponse:
    """Clear the authentication cookie. Safe to call when not logged in."""
    response.delete_cookie(key=ADMIN_COOKIE_NAME)
    return SuccessResponse(success=True, message="Logged out successfully")
