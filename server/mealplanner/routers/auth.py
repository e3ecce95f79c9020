from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from mealplanner.auth.deps import ACCESS_TOKEN_COOKIE, get_current_user
from mealplanner.auth.security import (
    create_access_token,
    generate_totp_secret,
    totp_provisioning_uri,
    verify_password,
    verify_totp,
)
from mealplanner.core.config import settings
from mealplanner.core.db import get_db
from mealplanner.core.time import as_utc, now_utc
from mealplanner.models.user import User
from mealplanner.schemas.auth import (
    LoginRequest,
    LoginUser,
    LogoutRequest,
    RefreshRequest,
    TokenResponse,
    TwoFactorSetupResponse,
    TwoFactorVerifyRequest,
    TwoFactorVerifyResponse,
    WhoAmIResponse,
)
from mealplanner.services.audit import client_ip, record_audit_event
from mealplanner.services.login_throttle import is_login_throttled
from mealplanner.services.user_accounts import (
    find_refresh_token,
    find_user_by_email,
    issue_refresh_token,
    purge_expired_refresh_tokens,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["auth"])


def _access_token_for(user: User) -> str:
    return create_access_token(subject=str(user.id), email=user.email, role=user.role)


def _set_access_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
    )


def _reject_login(db: Session, request: Request, email: str, reason: str, user: User | None = None) -> HTTPException:
    record_audit_event(
        db,
        action="login_failure",
        status="failure",
        user=user,
        email=email,
        error_message=reason,
        request=request,
    )
    logger.info("login_failed", extra={"email": email, "reason": reason, "ip": client_ip(request)})
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")


@router.post("/login", response_model=TokenResponse)
def login(request: Request, response: Response, payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    ip_address = client_ip(request)
    if is_login_throttled(db, ip_address):
        logger.warning("login_throttled", extra={"ip": ip_address, "email": payload.email})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts. Please try again later.",
        )

    user = find_user_by_email(db, payload.email)
    if not user or not user.is_active:
        raise _reject_login(db, request, payload.email, "Unknown or inactive user")
    if not verify_password(payload.password, user.hashed_password):
        raise _reject_login(db, request, payload.email, "Invalid password", user)

    if user.two_factor_enabled and user.two_factor_secret:
        if not payload.two_factor_code:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"message": "Two-factor code required", "requires_two_factor": True},
            )
        if not verify_totp(user.two_factor_secret, payload.two_factor_code):
            raise _reject_login(db, request, payload.email, "Invalid two-factor code", user)

    user.last_login_at = now_utc()
    purge_expired_refresh_tokens(db, user)
    refresh_token = issue_refresh_token(db, user)
    db.commit()

    record_audit_event(db, action="login_success", status="success", user=user, request=request)

    access_token = _access_token_for(user)
    _set_access_cookie(response, access_token)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=LoginUser(id=user.id, email=user.email, name=user.name, role=user.role),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh(request: Request, response: Response, payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenResponse:
    stored = find_refresh_token(db, payload.refresh_token)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    if as_utc(stored.expires_at) <= now_utc():
        db.delete(stored)
        db.commit()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token expired")

    user = stored.user
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")

    record_audit_event(db, action="token_refresh", status="success", user=user, request=request)

    access_token = _access_token_for(user)
    _set_access_cookie(response, access_token)
    return TokenResponse(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request, payload: LogoutRequest, db: Session = Depends(get_db)) -> Response:
    stored = find_refresh_token(db, payload.refresh_token)
    user = None
    if stored is not None:
        user = stored.user
        db.delete(stored)
        db.commit()
    record_audit_event(db, action="logout", status="success", user=user, request=request)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.post("/enable-2fa", response_model=TwoFactorSetupResponse)
def enable_two_factor(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TwoFactorSetupResponse:
    secret = generate_totp_secret()
    current_user.two_factor_secret = secret
    current_user.two_factor_enabled = True
    db.commit()

    record_audit_event(db, action="2fa_enable", status="success", user=current_user, request=request)
    return TwoFactorSetupResponse(
        secret=secret,
        provisioning_uri=totp_provisioning_uri(secret, current_user.email),
        message="Scan the provisioning URI with an authenticator app",
    )


@router.post("/verify-2fa", response_model=TwoFactorVerifyResponse)
def verify_two_factor(
    request: Request,
    payload: TwoFactorVerifyRequest,
    db: Session = Depends(get_db),
) -> TwoFactorVerifyResponse:
    user = find_user_by_email(db, payload.email)
    if not user or not user.two_factor_enabled or not user.two_factor_secret:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Two-factor authentication is not enabled")

    verified = verify_totp(user.two_factor_secret, payload.code)
    record_audit_event(
        db,
        action="2fa_verify",
        status="success" if verified else "failure",
        user=user,
        error_message=None if verified else "Invalid two-factor code",
        request=request,
    )
    if not verified:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid two-factor code")
    return TwoFactorVerifyResponse(verified=True, message="Two-factor code verified")


@router.get("/me", response_model=WhoAmIResponse)
def whoami(current_user: User = Depends(get_current_user)) -> WhoAmIResponse:
    return WhoAmIResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        role=current_user.role,
        two_factor_enabled=current_user.two_factor_enabled,
    )
