"""Tests for profile service."""

from uuid import UUID, uuid4

import pytest

from nutriscan.domain.errors import ConflictError, NotFoundError, ValidationError
from nutriscan.domain.goals import GoalType
from nutriscan.services.goals import GoalService
from nutriscan.services.profiles import ProfileService
from tests.conftest import InMemoryGoalRepository, InMemoryProfileRepository


def _service(
    goals: InMemoryGoalRepository | None = None,
) -> tuple[ProfileService, InMemoryProfileRepository, InMemoryGoalRepository]:
    profiles = InMemoryProfileRepository()
    goals = goals or InMemoryGoalRepository()
    service = ProfileService(
        repository=profiles, goal_service=GoalService(goals, profiles)
    )
    return service, profiles, goals


def _create(service: ProfileService, user_id: UUID, **overrides: object):
    values = {
        "age": 30,
        "sex": "male",
        "height_cm": 175,
        "weight_kg": 70,
        "activity_level": "moderately_active",
    }
    values.update(overrides)
    return service.create_profile(user_id, **values)


def test_create_profile_computes_bmi_and_goal() -> None:
    service, _, goals = _service()
    user_id = uuid4()

    created = _create(service, user_id)

    assert created.profile.bmi == 22.9
    assert created.profile.bmi_category == "normal"
    assert created.goal is not None
    assert created.goal.targets.calories == 2556
    assert created.goal.is_auto_calculated
    assert created.warning is None
    assert user_id in goals.goals


def test_create_profile_uses_requested_goal_type() -> None:
    service, _, _ = _service()

    created = _create(service, uuid4(), goal_type=GoalType.LOSE)

    assert created.goal is not None
    assert created.goal.goal_type is GoalType.LOSE
    assert created.goal.targets.calories == 2056


def test_create_profile_twice_conflicts() -> None:
    service, _, _ = _service()
    user_id = uuid4()
    _create(service, user_id)

    with pytest.raises(ConflictError):
        _create(service, user_id)


def test_goal_failure_keeps_profile_and_warns() -> None:
    service, profiles, _ = _service(InMemoryGoalRepository(fail_creates=True))
    user_id = uuid4()

    created = _create(service, user_id)

    assert created.goal is None
    assert created.warning is not None
    assert user_id in profiles.profiles


def test_profile_with_negative_derived_goal_warns_without_goal() -> None:
    service, profiles, goals = _service()
    user_id = uuid4()

    created = _create(
        service,
        user_id,
        age=120,
        sex="female",
        height_cm=30,
        weight_kg=20,
        activity_level="sedentary",
        goal_type=GoalType.LOSE,
    )

    assert created.goal is None
    assert created.warning is not None
    assert user_id in profiles.profiles
    assert goals.goals == {}


def test_create_profile_keeps_existing_goal() -> None:
    service, _, goals = _service()
    user_id = uuid4()
    first = _create(service, user_id)
    service.delete_profile(user_id)

    second = _create(service, user_id, weight_kg=90)

    assert second.goal == first.goal
    assert goals.goals[user_id] == first.goal


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"age": 0}, "age"),
        ({"height_cm": 10}, "height"),
        ({"weight_kg": "heavy"}, "weight"),
        ({"sex": "robot"}, "gender"),
        ({"activity_level": "lazy"}, "activity"),
    ],
)
def test_create_profile_validates_inputs(overrides: dict, message: str) -> None:
    service, profiles, _ = _service()

    with pytest.raises(ValidationError, match=message):
        _create(service, uuid4(), **overrides)
    assert profiles.profiles == {}


def test_update_profile_recomputes_bmi() -> None:
    service, _, _ = _service()
    user_id = uuid4()
    _create(service, user_id)

    updated = service.update_profile(user_id, {"weight_kg": 95.0, "sex": None})

    assert updated.weight_kg == 95.0
    assert updated.sex == "male"
    assert updated.bmi == 31.0
    assert updated.bmi_category == "obese"


def test_missing_profile_raises_not_found() -> None:
    service, _, _ = _service()

    with pytest.raises(NotFoundError):
        service.get_profile(uuid4())
    with pytest.raises(NotFoundError):
        service.update_profile(uuid4(), {"age": 40})
    with pytest.raises(NotFoundError):
        service.delete_profile(uuid4())


def test_has_profile() -> None:
    service, _, _ = _service()
    user_id = uuid4()

    assert not service.has_profile(user_id)
    _create(service, user_id)
    assert service.has_profile(user_id)
