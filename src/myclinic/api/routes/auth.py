"""Login and session status endpoints."""

from fastapi import APIRouter, Depends, status

from myclinic.api.dependencies import get_client
from myclinic.api.errors import ApiError
from myclinic.api.models import (
    AuthStatusResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
)
from myclinic.client import MyclinicClient

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
)
async def login(body: LoginRequest, client: MyclinicClient = Depends(get_client)):
    """Log in to Myclinic; the credentials are kept for silent re-login."""
    if not await client.login(body.email, body.password):
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication failed",
            "Invalid credentials or authentication error",
        )
    return LoginResponse(success=True, message="Login successful", authenticated=True)


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(client: MyclinicClient = Depends(get_client)):
    authenticated = client.is_authenticated()
    return AuthStatusResponse(
        authenticated=authenticated,
        sessionCookie=client.session_cookie if authenticated else None,
    )
