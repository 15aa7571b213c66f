"""
Authentication endpoints.

Every login-style endpoint returns the user with an access token in the
body and sets the refresh token as an HttpOnly cookie.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import EmailStr

from shared.config import Settings
from modules.auth.interfaces import IAuthService
from modules.auth.models import AuthResult

from ..cookies import clear_refresh_cookie, read_refresh_cookie, set_refresh_cookie
from ..dependencies import get_app_settings, get_auth_service
from ..models.auth import (
    AccessTokenResponse,
    AuthUserResponse,
    EmailExistsResponse,
    ExternalTokenRequest,
    LoginRequest,
    MessageResponse,
    PhoneLoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendOtpRequest,
    VerifyOtpRequest,
)
from ..models.errors import ERROR_RESPONSES

router = APIRouter(responses=ERROR_RESPONSES)


def _login_response(result: AuthResult, response: Response, settings: Settings) -> AuthUserResponse:
    set_refresh_cookie(response, result.refresh_token, settings)
    return AuthUserResponse.from_auth_user(result.user)


@router.post("/register", response_model=AuthUserResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Register with name, email and password."""
    result = await auth.register(body.name, body.email, body.password)
    return _login_response(result, response, settings)


@router.post("/login", response_model=AuthUserResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Log in with email and password."""
    result = await auth.login(body.email, body.password)
    return _login_response(result, response, settings)


@router.post("/google", response_model=AuthUserResponse)
async def google_login(
    body: ExternalTokenRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Log in or sign up with a Google identity token."""
    result = await auth.login_with_external_token(body.id_token)
    return _login_response(result, response, settings)


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(
    body: SendOtpRequest,
    auth: IAuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a one-time login code."""
    await auth.send_otp(body.email)
    return MessageResponse(message="OTP sent to your email")


@router.post("/verify-otp", response_model=AuthUserResponse)
async def verify_otp(
    body: VerifyOtpRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Log in or sign up with an emailed code. New users must send a password."""
    result = await auth.login_with_otp(body.email, body.otp, body.password)
    return _login_response(result, response, settings)


@router.get("/check-email", response_model=EmailExistsResponse)
async def check_email(
    email: EmailStr = Query(..., description="Email address to look up"),
    auth: IAuthService = Depends(get_auth_service),
) -> EmailExistsResponse:
    """Report whether an account exists for an email."""
    return EmailExistsResponse(exists=await auth.check_email_exists(email))


@router.post("/refresh-token", response_model=AccessTokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AccessTokenResponse:
    """
    Rotate the refresh cookie and return a new access token.

    The presented refresh token is revoked; replaying it later fails.
    """
    tokens = await auth.refresh(read_refresh_cookie(request, settings) or "")
    set_refresh_cookie(response, tokens.refresh_token, settings)
    return AccessTokenResponse(token=tokens.access_token)


@router.post("/reset-password", response_model=AuthUserResponse)
async def reset_password(
    body: ResetPasswordRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Set a new password using an emailed code, then log in."""
    result = await auth.reset_password(body.email, body.otp, body.new_password)
    return _login_response(result, response, settings)


@router.post("/phone", response_model=AuthUserResponse)
async def phone_login(
    body: PhoneLoginRequest,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> AuthUserResponse:
    """Log in or sign up with a phone-bound identity token."""
    result = await auth.login_with_phone_token(body.id_token, body.phone)
    return _login_response(result, response, settings)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    """Revoke the refresh cookie (if any) and clear it."""
    await auth.logout(read_refresh_cookie(request, settings))
    clear_refresh_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")
