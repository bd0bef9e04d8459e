"""Authentication endpoints (always public)."""

from fastapi import APIRouter, HTTPException, status

from caseload.config import load_app_config
from caseload.core.auth import (
    AuthError,
    auth_status,
    change_password,
    create_token,
    setup_password,
    verify_password,
)
from caseload.web.schemas import (
    AuthStatusResponse,
    ChangePasswordRequest,
    MessageResponse,
    PasswordRequest,
    TokenResponse,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(message: str) -> TokenResponse:
    token, expires = create_token(load_app_config().auth)
    return TokenResponse(message=message, token=token, expires_at=expires.isoformat())


@router.get("/status", response_model=AuthStatusResponse)
async def get_status() -> AuthStatusResponse:
    """Whether auth is enabled and whether a password has been set."""
    config = load_app_config()
    return AuthStatusResponse(**auth_status(config.auth, config.auth_file))


@router.post("/setup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def setup(body: PasswordRequest) -> TokenResponse:
    """Set the initial password."""
    try:
        setup_password(load_app_config().auth_file, body.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _token_response("Authentication set up successfully")


@router.post("/login", response_model=TokenResponse)
def login(body: PasswordRequest) -> TokenResponse:
    """Exchange the password for a token."""
    try:
        valid = verify_password(load_app_config().auth_file, body.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if not valid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")
    return _token_response("Login successful")


@router.post("/change-password", response_model=TokenResponse)
def change(body: ChangePasswordRequest) -> TokenResponse:
    """Change the password, issuing a fresh token."""
    try:
        changed = change_password(
            load_app_config().auth_file, body.current_password, body.new_password
        )
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    if not changed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect"
        )
    return _token_response("Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logged out successfully")
