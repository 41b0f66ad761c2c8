"""Daily goal endpoints and the stateless calculator."""

from fastapi import APIRouter, Depends, Query, status

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.responses import goal_to_dict, targets_to_dict
from nutriscan.api.schemas import (
    GoalCalculateRequest,
    GoalCreateRequest,
    GoalEnsureRequest,
    GoalUpdateRequest,
)
from nutriscan.containers import AppContainer
from nutriscan.domain.errors import ValidationError
from nutriscan.domain.goals import GoalTargets
from nutriscan.domain.models import UserRecord
from nutriscan.services.goal_engine import (
    calculate_targets,
    parse_goal_type,
    validate_biometrics,
)

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(
    body: GoalCreateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Create a goal, auto-calculated from the profile unless targets are given."""
    targets = None
    if not body.auto_calculate:
        values = body.target_changes()
        if len(values) < 4:
            raise ValidationError(
                "targetCalories, targetProtein, targetCarbs and targetFat "
                "are required when autoCalculate is false"
            )
        targets = GoalTargets(**values)  # type: ignore[arg-type]
    goal = container.goal_service.create_goal(
        user.id,
        parse_goal_type(body.goal_type),
        targets,
        auto_calculate=body.auto_calculate,
    )
    return {
        "message": "Daily goal created successfully",
        "dailyGoal": goal_to_dict(goal),
    }


@router.post("/ensure")
async def ensure_goal(
    body: GoalEnsureRequest | None = None,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return the stored goal, deriving one from the profile when absent."""
    goal_type = parse_goal_type(body.goal_type if body else None)
    goal = container.goal_service.ensure_goal(user.id, goal_type)
    return {"dailyGoal": goal_to_dict(goal)}


@router.get("/calculate")
async def preview_goal(
    goal_type: str | None = Query(default=None, alias="goalType"),
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    parsed = parse_goal_type(goal_type)
    targets = container.goal_service.preview_goal(user.id, parsed)
    return {"goalType": parsed.value, "calculatedGoals": targets_to_dict(targets)}


@router.post("/calculate")
async def calculate_goal(body: GoalCalculateRequest) -> dict[str, object]:
    """Calculate targets from raw biometrics without storing anything."""
    biometrics = validate_biometrics(
        age=body.age,
        sex=body.gender,
        height_cm=body.height,
        weight_kg=body.weight,
        activity_level=body.activity_level,
    )
    goal_type = parse_goal_type(body.goal_type)
    targets = calculate_targets(biometrics, goal_type)
    return {"goalType": goal_type.value, **targets_to_dict(targets)}


@router.get("")
async def get_goal(
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    return {"dailyGoal": goal_to_dict(container.goal_service.get_goal(user.id))}


@router.put("")
async def update_goal(
    body: GoalUpdateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    changes: dict[str, object] = dict(body.target_changes())
    if body.goal_type is not None:
        changes["goal_type"] = parse_goal_type(body.goal_type)
    goal = container.goal_service.update_goal(
        user.id, changes, recalculate=body.recalculate
    )
    return {
        "message": "Daily goal updated successfully",
        "dailyGoal": goal_to_dict(goal),
    }


@router.delete("")
async def delete_goal(
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    container.goal_service.delete_goal(user.id)
    return {"message": "Daily goal deleted successfully"}
