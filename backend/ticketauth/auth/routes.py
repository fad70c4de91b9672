from fastapi import APIRouter, Depends, Response, status
from typing import Optional
import logging

from ..context import AppContext
from ..dependencies import get_auth_controller, get_context, get_session_id
from ..schemas import (
    BaseResponse,
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from .controller import AuthFlowController

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/register", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    controller: AuthFlowController = Depends(get_auth_controller)
):
    """Create an account. No session or token is issued."""

    user = await controller.register(request.email, request.username, request.password)
    logger.info(f"Account {user.id} created")

    return BaseResponse(message="Account created successfully")

@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    controller: AuthFlowController = Depends(get_auth_controller),
    context: AppContext = Depends(get_context)
):
    """
    Check the password, issue an OTP and open an unverified session.

    The OTP is returned in the body in place of an email/SMS delivery channel.
    """

    result = await controller.login(request.email, request.password, previous_session_id=session_id)

    settings = context.settings
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax"
    )

    return LoginResponse(otp=result.otp, message="OTP code generated. Please verify.")

@router.post("/verify", response_model=VerifyOTPResponse)
async def verify(
    request: VerifyOTPRequest,
    session_id: Optional[str] = Depends(get_session_id),
    controller: AuthFlowController = Depends(get_auth_controller),
    context: AppContext = Depends(get_context)
):
    """Confirm the OTP for the current session and issue a bearer token"""

    result = await controller.verify(session_id, request.otp)

    return VerifyOTPResponse(
        message="Verification successful",
        token=result.token,
        expires_in=context.settings.jwt_access_token_expire_minutes * 60
    )

@router.post("/logout", response_model=BaseResponse)
async def logout(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    controller: AuthFlowController = Depends(get_auth_controller),
    context: AppContext = Depends(get_context)
):
    """Destroy the current session"""

    await controller.logout(session_id)
    response.delete_cookie(
        key=context.settings.session_cookie_name,
        httponly=True,
        secure=context.settings.session_cookie_secure,
        samesite="lax"
    )

    return BaseResponse(message="Logged out successfully")
