"""Authentication router - OTP issuance/verification, signup and login"""

from fastapi import APIRouter, Depends
from typing import Annotated
import logging

from ..schemas.auth import (
    SendOtpRequest,
    VerifyOtpRequest,
    SignupRequest,
    LoginRequest,
    AuthResponse,
    SendOtpResponse,
)
from ..core.exceptions import InfrastructureError, StoreUnavailableError
from ..core.logger import mask_identifier
from ..dependencies import get_auth_service
from ..services.auth_service import AuthService, OtpDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-otp", response_model=SendOtpResponse, response_model_exclude_none=True)
async def send_otp(
    request: SendOtpRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Issue a new OTP for the identifier and deliver it out-of-band"""
    try:
        code = await auth.send_otp(request.identifier, request.delivery_token)
    except StoreUnavailableError as e:
        raise InfrastructureError("Error sending OTP", error=e.message)
    except OtpDeliveryError as e:
        raise InfrastructureError("Error sending OTP", error=e.details.get("error", e.message))

    return SendOtpResponse(
        success=True,
        message="OTP sent",
        otp=code if auth.echo_otp else None,
    )


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Check a code; a wrong or expired code is a 200 with success=false"""
    try:
        outcome = await auth.verify_otp(request.identifier, request.code)
    except StoreUnavailableError as e:
        raise InfrastructureError("Error verifying OTP", error=e.message)

    return AuthResponse(success=outcome.success, message=outcome.message)


@router.post("/signup", response_model=AuthResponse)
async def signup(
    request: SignupRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Set the password for a verified identifier"""
    try:
        outcome = await auth.signup(
            request.identifier,
            request.password,
            full_name=request.full_name,
            phone=request.phone,
            delivery_token=request.delivery_token,
        )
    except StoreUnavailableError as e:
        raise InfrastructureError("Error during signup", error=e.message)
    except ValueError as e:
        # bcrypt refuses the input
        logger.error(f"[AUTH] Password hashing failed for {mask_identifier(request.identifier)}: {e}")
        raise InfrastructureError("Error during signup", error=str(e))

    return AuthResponse(success=outcome.success, message=outcome.message)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Password login, only for verified identifiers"""
    try:
        outcome = await auth.login(request.identifier, request.password, request.delivery_token)
    except StoreUnavailableError as e:
        raise InfrastructureError("Error during login", error=e.message)

    return AuthResponse(success=outcome.success, message=outcome.message)
