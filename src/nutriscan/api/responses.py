"""JSON shapes returned by the HTTP API."""

from nutriscan.domain.consumption import (
    ConsumptionLogEntry,
    DailySummary,
    LogPage,
    NutrientAmounts,
)
from nutriscan.domain.foods import FoodItem
from nutriscan.domain.goals import DailyGoal, GoalTargets
from nutriscan.domain.models import UserRecord
from nutriscan.domain.profiles import Profile


def user_to_dict(user: UserRecord) -> dict[str, object]:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "picture": user.picture_url,
    }


def profile_to_dict(profile: Profile) -> dict[str, object]:
    return {
        "userId": str(profile.user_id),
        "age": profile.age,
        "gender": profile.sex,
        "height": profile.height_cm,
        "weight": profile.weight_kg,
        "bmi": profile.bmi,
        "bmiCategory": profile.bmi_category,
        "activityLevel": profile.activity_level,
        "updatedAt": profile.updated_at.isoformat() if profile.updated_at else None,
    }


def targets_to_dict(targets: GoalTargets) -> dict[str, object]:
    return {
        "targetCalories": targets.calories,
        "targetProtein": targets.protein_g,
        "targetCarbs": targets.carbs_g,
        "targetFat": targets.fat_g,
    }


def goal_to_dict(goal: DailyGoal) -> dict[str, object]:
    return {
        "userId": str(goal.user_id),
        "goalType": goal.goal_type.value,
        **targets_to_dict(goal.targets),
        "isAutoCalculated": goal.is_auto_calculated,
        "updatedAt": goal.updated_at.isoformat() if goal.updated_at else None,
    }


def food_to_dict(food: FoodItem) -> dict[str, object]:
    facts = food.facts
    return {
        "barcode": food.barcode,
        "name": food.name,
        "brand": food.brand,
        "caloriesPer100g": facts.calories,
        "proteinsPer100g": facts.protein_g,
        "carbsPer100g": facts.carbs_g,
        "fatsPer100g": facts.fat_g,
        "sugarsPer100g": facts.sugar_g,
        "fiberPer100g": facts.fiber_g,
        "sodiumPer100g": facts.sodium_g,
        "servingSize": food.serving_size_g,
        "imageUrl": food.image_url,
        "source": food.source.value,
        "updatedAt": food.updated_at.isoformat() if food.updated_at else None,
    }


def nutrients_to_dict(nutrients: NutrientAmounts) -> dict[str, float]:
    return {
        "calories": nutrients.calories,
        "protein": nutrients.protein_g,
        "carbs": nutrients.carbs_g,
        "fat": nutrients.fat_g,
        "sugar": nutrients.sugar_g,
    }


def entry_to_dict(entry: ConsumptionLogEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "barcode": entry.barcode,
        "foodName": entry.food_name,
        "amountConsumed": entry.amount_g,
        "date": entry.log_date.isoformat(),
        "consumedAt": entry.consumed_at.isoformat(),
        "nutrients": nutrients_to_dict(entry.nutrients),
    }


def page_to_dict(page: LogPage) -> dict[str, object]:
    return {
        "consumptionLogs": [entry_to_dict(entry) for entry in page.entries],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "totalPages": page.total_pages,
        },
    }


_COMPARISON_KEYS = {
    "calories": "calories",
    "protein_g": "protein",
    "carbs_g": "carbs",
    "fat_g": "fat",
}


def summary_to_dict(summary: DailySummary) -> dict[str, object]:
    comparison = None
    if summary.comparison is not None:
        comparison = {
            _COMPARISON_KEYS[key]: {
                "consumed": value.consumed,
                "goal": value.goal,
                "remaining": value.remaining,
                "percentage": value.percentage,
            }
            for key, value in summary.comparison.items()
        }
    return {
        "date": summary.day.isoformat(),
        "summary": nutrients_to_dict(summary.totals),
        "itemCount": summary.item_count,
        "goalComparison": comparison,
        "logs": [entry_to_dict(entry) for entry in summary.entries],
    }
