"""Supabase repository for biometric profiles."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutriscan.adapters.supabase_errors import execute_insert
from nutriscan.domain.profiles import Profile
from nutriscan.services.profiles import ProfileRepository

_COLUMNS = "user_id, age, gender, height_cm, weight_kg, bmi, activity_level, updated_at"


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> Profile | None:
        response = (
            self.client.table("profiles")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_profile(response.data[0])
        return None

    def create_profile(self, profile: Profile) -> Profile:
        row = execute_insert(
            self.client.table("profiles").insert(_to_row(profile)),
            "Profile already exists. Use PUT to update.",
        )
        return _to_profile(row)

    def update_profile(self, profile: Profile) -> Profile:
        payload = _to_row(profile)
        payload.pop("user_id")
        response = (
            self.client.table("profiles")
            .update(payload)
            .eq("user_id", str(profile.user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update profile in Supabase")
        return _to_profile(response.data[0])

    def delete_profile(self, user_id: UUID) -> None:
        self.client.table("profiles").delete().eq("user_id", str(user_id)).execute()


def _to_row(profile: Profile) -> dict[str, object]:
    return {
        "user_id": str(profile.user_id),
        "age": profile.age,
        "gender": profile.sex,
        "height_cm": profile.height_cm,
        "weight_kg": profile.weight_kg,
        "bmi": profile.bmi,
        "activity_level": profile.activity_level,
        "updated_at": (profile.updated_at or datetime.now(tz=UTC)).isoformat(),
    }


def _to_profile(row: dict[str, object]) -> Profile:
    updated_at = row.get("updated_at")
    return Profile(
        user_id=UUID(str(row["user_id"])),
        age=int(row["age"]),  # type: ignore[arg-type]
        sex=str(row["gender"]),
        height_cm=float(row["height_cm"]),  # type: ignore[arg-type]
        weight_kg=float(row["weight_kg"]),  # type: ignore[arg-type]
        bmi=float(row["bmi"]),  # type: ignore[arg-type]
        activity_level=str(row["activity_level"]),
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
    )
