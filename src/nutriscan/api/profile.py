"""Biometric profile endpoints."""

from fastapi import APIRouter, Depends, status

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.responses import goal_to_dict, profile_to_dict
from nutriscan.api.schemas import ProfileCreateRequest, ProfileUpdateRequest
from nutriscan.containers import AppContainer
from nutriscan.domain.models import UserRecord
from nutriscan.services.goal_engine import parse_goal_type

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_profile(
    body: ProfileCreateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Create the profile and its auto-calculated daily goal."""
    created = container.profile_service.create_profile(
        user.id,
        age=body.age,
        sex=body.gender,
        height_cm=body.height,
        weight_kg=body.weight,
        activity_level=body.activity_level,
        goal_type=parse_goal_type(body.goal_type),
    )
    payload: dict[str, object] = {
        "message": "Profile created successfully",
        "profile": profile_to_dict(created.profile),
        "dailyGoal": goal_to_dict(created.goal) if created.goal else None,
    }
    if created.warning:
        payload["warning"] = created.warning
    return payload


@router.get("")
async def get_profile(
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    profile = container.profile_service.get_profile(user.id)
    return {"profile": profile_to_dict(profile)}


@router.put("")
async def update_profile(
    body: ProfileUpdateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    profile = container.profile_service.update_profile(user.id, body.changes())
    return {
        "message": "Profile updated successfully",
        "profile": profile_to_dict(profile),
    }


@router.delete("")
async def delete_profile(
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    container.profile_service.delete_profile(user.id)
    return {"message": "Profile deleted successfully"}
