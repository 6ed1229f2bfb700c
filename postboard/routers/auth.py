from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status

from postboard.dependencies.auth import AuthenticatedUser, get_current_user
from postboard.dependencies.services import get_auth_service
from postboard.schemas.auth import (
    EmailRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionOut,
    TokenPairResponse,
    VerifyEmailRequest,
)
from postboard.services.auth_service import AuthService

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    service.register(body.email, body.password)
    return MessageResponse(message="User registered successfully, please verify your email")


@auth_router.post("/login", response_model=TokenPairResponse)
def login(
    body: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    pair = service.login(
        body.email,
        body.password,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@auth_router.post("/refresh", response_model=TokenPairResponse)
def refresh(body: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    pair = service.refresh(body.refresh_token)
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@auth_router.post("/verify-email", response_model=MessageResponse)
def verify_email(body: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    service.verify_email(body.token)
    return MessageResponse(message="Email verified successfully")


@auth_router.post("/request-email-verification", response_model=MessageResponse)
def request_email_verification(body: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.request_email_verification(body.email)
    return MessageResponse(message="Verification email sent")


@auth_router.post("/request-password-reset", response_model=MessageResponse)
def request_password_reset(body: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.request_password_reset(body.email)
    return MessageResponse(message="Password reset email sent")


@auth_router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password reset successfully")


@auth_router.post("/logout", response_model=MessageResponse)
def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.logout(user.session_id)
    return MessageResponse(message="Logged out successfully")


@auth_router.get("/sessions", response_model=List[SessionOut])
def list_sessions(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return [
        SessionOut(
            id=s.id,
            user_agent=s.user_agent,
            ip_address=s.ip_address,
            device_name=s.device_name,
            is_revoked=s.is_revoked,
            created_at=s.created_at,
            last_used_at=s.last_used_at,
            expires_at=s.expires_at,
            is_current=s.id == user.session_id,
        )
        for s in service.list_active_sessions(user.user_id)
    ]


@auth_router.post("/sessions/revoke-all", response_model=MessageResponse)
def revoke_all_sessions(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.revoke_all_sessions(user.user_id)
    return MessageResponse(message="All sessions revoked")
