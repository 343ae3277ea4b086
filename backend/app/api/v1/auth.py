from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import BadRequestError
from app.core.permissions import Principal
from app.core.rate_limit import limiter
from app.core.security import get_client_ip
from app.schemas.auth import (
    EmailAvailableResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    TwoFactorChallengeResponse,
    TwoFactorRequiredResponse,
    TwoFactorVerifyRequest,
)
from app.schemas.common import MessageResponse
from app.services.auth_service import AuthService, issue_session, public_user

router = APIRouter()

_email_adapter = TypeAdapter(EmailStr)


@router.get("/email-available", response_model=EmailAvailableResponse)
async def email_available(email: str = Query(..., description="Email to check"), db: AsyncSession = Depends(get_db)):
    """
    Check whether an email can still be registered.
    """
    try:
        email = _email_adapter.validate_python(email.strip())
    except ValidationError:
        raise BadRequestError("Invalid email address")
    return {"available": await AuthService(db).email_available(email)}


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
async def register(request: Request, body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """
    Register a new, inactive account.

    The returned token is marked ``preActivation``; the account cannot log in
    until the emailed activation link is followed.
    """
    user, roles = await AuthService(db).register(body.first_name, body.last_name, body.email, body.password)
    return issue_session(user.id, user.email, user.full_name, roles, pre_activation=True)


@router.get("/activate")
async def activate(token: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    """
    Activate an account from the emailed link.
    """
    await AuthService(db).activate(token)
    if settings.web_origin:
        return RedirectResponse(
            url=f"{settings.web_origin.rstrip('/')}/login?activated=1",
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        )
    return {"status": "success", "message": "Account activated successfully"}


@router.post("/login", response_model=TwoFactorRequiredResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(settings.auth_rate_limit)
async def login(request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Check credentials and email a one-time code.

    Every login needs the second step at ``/2fa/verify``.
    """
    challenge = await AuthService(db).start_two_factor(body.email, body.password, get_client_ip(request))
    return {
        "challenge_id": challenge.challenge_id,
        "expires_in_seconds": challenge.expires_in_seconds,
    }


@router.post("/2fa/challenge", response_model=TwoFactorChallengeResponse, response_model_exclude_none=True)
@limiter.limit(settings.auth_rate_limit)
async def create_challenge(request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Start a two-factor challenge for the given credentials without going
    through the full login response. Outside production the code is
    returned as well, so clients and tests can finish the flow.
    """
    challenge = await AuthService(db).start_two_factor(body.email, body.password, get_client_ip(request))
    response: Dict[str, Any] = {
        "challenge_id": challenge.challenge_id,
        "expires_in_seconds": challenge.expires_in_seconds,
    }
    if not settings.is_production:
        response["otp_code"] = challenge.code
    return response


@router.post("/2fa/verify", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def verify_two_factor(request: Request, body: TwoFactorVerifyRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange a challenge id and code for a session token.
    """
    return AuthService(db).verify_two_factor(str(body.challenge_id), body.code)


@router.post("/forgot-password", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
@limiter.limit(settings.auth_rate_limit)
async def forgot_password(request: Request, body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """
    Start a password reset. The response is the same whether or not the
    email is registered.
    """
    token: Optional[str] = await AuthService(db).forgot_password(body.email)
    response: Dict[str, Any] = {}
    if token and not settings.is_production:
        response["reset_token"] = token
    return response


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(settings.auth_rate_limit)
async def reset_password(request: Request, body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    """
    Set a new password using the token from the reset email. The token is
    single use and expires.
    """
    await AuthService(db).reset_password(str(body.token), body.password)
    return {"message": "Password has been reset successfully"}


@router.get("/me")
async def me(current_user: Principal = Depends(get_current_user)):
    """
    Get the authenticated user as carried in session tokens.
    """
    return {"user": public_user(current_user.id, current_user.email, current_user.name, current_user.roles)}
