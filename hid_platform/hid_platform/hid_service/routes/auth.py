"""
Credential routes: signup, login, OTP, password reset and token refresh.
"""
from fastapi import APIRouter, Depends, Request, status

from ..config import Settings
from ..dependencies import get_credential_service, get_settings
from ..schemas import (
    LoginRequest,
    MessageResponse,
    OtpRequest,
    OtpSentResponse,
    OtpVerifyRequest,
    PasswordResetConfirm,
    RefreshTokenRequest,
    SignupRequest,
    SignupResponse,
    SignupUser,
    TokenResponse,
)
from ..service import CredentialService
from ..utils.event_logger import client_info

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, request: Request,
           service: CredentialService = Depends(get_credential_service)):
    result = service.signup(payload, client_info(request))
    return SignupResponse(
        message="User successfully registered.",
        user=SignupUser(user_id=result.user_id, email=result.email, health_id=result.health_id),
    )


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request,
          service: CredentialService = Depends(get_credential_service)):
    result = service.login(payload, client_info(request))
    return TokenResponse(
        user_id=result.user_id,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/send-otp", response_model=OtpSentResponse, response_model_exclude_none=True)
def send_otp(payload: OtpRequest, request: Request,
             service: CredentialService = Depends(get_credential_service),
             settings: Settings = Depends(get_settings)):
    issued = service.request_otp(payload, client_info(request))
    # The code is echoed back only outside production
    return OtpSentResponse(
        message="OTP sent successfully.",
        otp=None if settings.is_production else issued.code,
    )


@router.post("/verify-otp", response_model=MessageResponse)
def verify_otp(payload: OtpVerifyRequest, request: Request,
               service: CredentialService = Depends(get_credential_service)):
    service.verify_otp(payload, client_info(request))
    return MessageResponse(message="OTP verified successfully.")


@router.post("/confirm-password-reset", response_model=MessageResponse)
def confirm_password_reset(payload: PasswordResetConfirm, request: Request,
                           service: CredentialService = Depends(get_credential_service)):
    service.reset_password(payload, client_info(request))
    return MessageResponse(message="Password has been reset successfully.")


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(payload: RefreshTokenRequest, request: Request,
                  service: CredentialService = Depends(get_credential_service)):
    result = service.refresh_token(payload.refresh_token, client_info(request))
    return TokenResponse(
        user_id=result.user_id,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )
