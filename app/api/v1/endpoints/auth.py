"""
Auth endpoints — self-registration and login.
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.api.v1.deps import get_auth_service
from app.api.v1.results import raise_for_result
from app.core.limiter import api_limit
from app.core.logging import request_context
from app.schemas.user import LoginRequest, UserRegister
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", status_code=201)
@api_limit
async def register(
    body: UserRegister,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Create an account; role and status always take their defaults."""
    result = await auth_service.register(body)
    if not result.success:
        logger.warning(
            "Registration failed for %s: %s | %s", body.email, result.message, request_context(request)
        )
    raise_for_result(result)

    logger.info("User registered successfully: %s | %s", body.email, request_context(request))
    return {
        "success": True,
        "message": result.message,
        "data": {"user": result.data, "token": result.token},
    }


@router.post("/login")
@api_limit
async def login(
    body: LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Authenticate with email, password and the role being logged into."""
    result = await auth_service.login(body.email, body.password, body.role)
    if not result.success:
        logger.warning("Login failed for %s: %s | %s", body.email, result.message, request_context(request))
    raise_for_result(result)

    logger.info("User logged in successfully: %s | %s", body.email, request_context(request))
    return {"success": True, "message": result.message, "data": result.data}
