"""Request-scoped dependencies shared by the routers."""

from fastapi import Depends, Header, Request

from nutriscan.containers import AppContainer
from nutriscan.domain.errors import AuthenticationError
from nutriscan.domain.models import UserRecord

_BEARER_PREFIX = "Bearer "


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise AuthenticationError("Access denied. No token provided.")
    return authorization.removeprefix(_BEARER_PREFIX).strip()


def current_user(
    token: str = Depends(bearer_token),
    container: AppContainer = Depends(get_container),
) -> UserRecord:
    """Resolve the stored user for the bearer token."""
    return container.user_service.authenticate(token)
