"""User-related business logic."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutriscan.domain.errors import AuthenticationError, NotFoundError
from nutriscan.domain.models import Identity, UserRecord

_logger = logging.getLogger(__name__)


class IdentityVerifier(Protocol):
    """Interface to the managed identity provider."""

    def verify(self, token: str) -> Identity:
        """Return verified claims or raise AuthenticationError."""


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_by_subject(self, auth_subject: str) -> UserRecord | None:
        """Return the user for an identity subject, if present."""

    def create_user(self, identity: Identity) -> UserRecord:
        """Create and return a new user record."""

    def update_user(self, user_id: UUID, changes: dict[str, object]) -> UserRecord:
        """Apply changes to a user and return the updated record."""


class HasProfile(Protocol):
    """Callable reporting whether a user has completed onboarding."""

    def __call__(self, user_id: UUID) -> bool: ...


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a login."""

    user: UserRecord
    is_new_user: bool


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository
    identity_verifier: IdentityVerifier

    def login(self, token: str, has_profile: HasProfile) -> LoginResult:
        """Verify a token, create or refresh the user and report onboarding state."""
        identity = self._verify(token)
        existing = self.repository.get_by_subject(identity.subject)
        if existing is None:
            created = self.repository.create_user(identity)
            _logger.info("Created user", extra={"user_id": str(created.id)})
            return LoginResult(user=created, is_new_user=True)

        changes = _claim_changes(existing, identity)
        user = existing
        if changes:
            user = self.repository.update_user(existing.id, changes)
            _logger.info(
                "Refreshed user claims",
                extra={"user_id": str(existing.id), "fields": sorted(changes)},
            )
        return LoginResult(user=user, is_new_user=not has_profile(user.id))

    def authenticate(self, token: str) -> UserRecord:
        """Resolve the stored user for a bearer token."""
        identity = self._verify(token)
        user = self.repository.get_by_subject(identity.subject)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _verify(self, token: str) -> Identity:
        if not token or not token.strip():
            raise AuthenticationError("Access denied. No token provided.")
        return self.identity_verifier.verify(token.strip())


def _claim_changes(user: UserRecord, identity: Identity) -> dict[str, object]:
    changes: dict[str, object] = {}
    if identity.email and identity.email != user.email:
        changes["email"] = identity.email
    if identity.name and identity.name != user.name:
        changes["name"] = identity.name
    if identity.picture_url and identity.picture_url != user.picture_url:
        changes["picture_url"] = identity.picture_url
    return changes
