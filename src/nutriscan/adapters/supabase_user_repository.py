"""Supabase-backed user repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutriscan.adapters.supabase_errors import execute_insert
from nutriscan.domain.models import Identity, UserRecord
from nutriscan.services.users import UserRepository

_COLUMNS = "id, auth_subject, email, name, picture_url"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_subject(self, auth_subject: str) -> UserRecord | None:
        """Return the user for an identity subject, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("auth_subject", auth_subject)
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_user(response.data[0])
        return None

    def create_user(self, identity: Identity) -> UserRecord:
        row = execute_insert(
            self.client.table("users").insert(
                {
                    "auth_subject": identity.subject,
                    "email": identity.email,
                    "name": identity.name,
                    "picture_url": identity.picture_url,
                }
            ),
            "User already exists",
        )
        return _to_user(row)

    def update_user(self, user_id: UUID, changes: dict[str, object]) -> UserRecord:
        response = (
            self.client.table("users").update(changes).eq("id", str(user_id)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update user in Supabase")
        return _to_user(response.data[0])


def _to_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        auth_subject=str(row["auth_subject"]),
        email=row.get("email"),  # type: ignore[arg-type]
        name=row.get("name"),  # type: ignore[arg-type]
        picture_url=row.get("picture_url"),  # type: ignore[arg-type]
    )
