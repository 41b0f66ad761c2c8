"""Domain models for users and identities."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    auth_subject: str
    email: str | None
    name: str | None
    picture_url: str | None = None


@dataclass(frozen=True)
class Identity:
    """Verified claims returned by the identity provider."""

    subject: str
    email: str | None
    name: str | None
    picture_url: str | None
