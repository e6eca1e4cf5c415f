"""FastAPI dependencies for the shared client and session checks."""

from fastapi import Depends, Request, status

from myclinic.api.errors import ApiError
from myclinic.client import MyclinicClient


def get_client(request: Request) -> MyclinicClient:
    """The MyclinicClient created at startup."""
    return request.app.state.client


async def require_auth(client: MyclinicClient = Depends(get_client)) -> MyclinicClient:
    """
    Require an authenticated Myclinic session.

    Raises:
        ApiError: 401 if no session cookie is held
    """
    if not client.is_authenticated():
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Unauthorized",
            "Valid authentication session required",
        )
    return client
