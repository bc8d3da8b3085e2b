# budget_api/routers/auth.py
# Auth endpoints: tokens, profile, password flows, email verification, account deletion.

from fastapi import APIRouter, Depends, status

from budget_api.deps import get_auth_service, require_auth
from budget_api.schemas import (
    AuthOut,
    ChangePasswordIn,
    DeleteAccountIn,
    EmailIn,
    LoginIn,
    MessageOut,
    ProfileIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    TokenIn,
    TokensOut,
    UserOut,
)
from budget_api.security import AuthContext, TokenPair
from budget_api.services.auth import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_out(user, pair: TokenPair) -> AuthOut:
    return AuthOut(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserOut.model_validate(user),
    )


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(body: RegisterIn, auth: AuthService = Depends(get_auth_service)):
    user, pair = auth.register(body.email, body.password, body.name)
    return _auth_out(user, pair)


@router.post("/login", response_model=AuthOut)
def login(body: LoginIn, auth: AuthService = Depends(get_auth_service)):
    user, pair = auth.login(body.email, body.password)
    return _auth_out(user, pair)


@router.post("/refresh", response_model=TokensOut)
def refresh(body: RefreshIn, auth: AuthService = Depends(get_auth_service)):
    pair = auth.refresh(body.refresh_token)
    return TokensOut(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.get("/me", response_model=UserOut)
def me(
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.me(ctx.user_id)


@router.put("/profile", response_model=UserOut)
def update_profile(
    body: ProfileIn,
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.update_profile(ctx.user_id, body.name)


@router.post("/logout", response_model=MessageOut)
def logout(
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(ctx)
    return MessageOut(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(body: EmailIn, auth: AuthService = Depends(get_auth_service)):
    return MessageOut(message=auth.forgot_password(body.email))


@router.post("/reset-password", response_model=MessageOut)
def reset_password(body: ResetPasswordIn, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(body.token, body.new_password)
    return MessageOut(message="Password reset successfully")


@router.post("/change-password", response_model=MessageOut)
def change_password(
    body: ChangePasswordIn,
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(ctx, body.current_password, body.new_password)
    return MessageOut(message="Password changed successfully")


@router.post("/verify-email", response_model=MessageOut)
def verify_email(body: TokenIn, auth: AuthService = Depends(get_auth_service)):
    auth.verify_email(body.token)
    return MessageOut(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageOut)
def resend_verification(body: EmailIn, auth: AuthService = Depends(get_auth_service)):
    return MessageOut(message=auth.resend_verification(body.email))


@router.delete("/account", response_model=MessageOut)
def delete_account(
    body: DeleteAccountIn,
    ctx: AuthContext = Depends(require_auth),
    auth: AuthService = Depends(get_auth_service),
):
    auth.delete_account(ctx, body.password)
    return MessageOut(message="Account deleted successfully")
