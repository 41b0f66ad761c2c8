"""Login and identity endpoints."""

from fastapi import APIRouter, Depends

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.responses import user_to_dict
from nutriscan.api.schemas import LoginRequest
from nutriscan.containers import AppContainer
from nutriscan.domain.models import UserRecord

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(
    body: LoginRequest, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    """Verify an identity token and create or refresh the user."""
    result = container.user_service.login(
        body.token, container.profile_service.has_profile
    )
    return {
        "message": "Login successful",
        "user": user_to_dict(result.user),
        "isNewUser": result.is_new_user,
    }


@router.get("/me")
async def me(user: UserRecord = Depends(current_user)) -> dict[str, object]:
    return {"user": user_to_dict(user)}
