"""Bearer token verification through Supabase Auth."""

import logging
from dataclasses import dataclass

from supabase import AuthError, Client

from nutriscan.domain.errors import AuthenticationError
from nutriscan.domain.models import Identity
from nutriscan.services.users import IdentityVerifier

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityVerifier(IdentityVerifier):
    """Resolves access tokens to verified claims."""

    client: Client

    def verify(self, token: str) -> Identity:
        try:
            response = self.client.auth.get_user(token)
        except AuthError as exc:
            _logger.info("Rejected access token: %s", exc)
            raise AuthenticationError("Invalid or expired token") from exc
        user = response.user if response else None
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        metadata = user.user_metadata or {}
        return Identity(
            subject=str(user.id),
            email=user.email,
            name=metadata.get("full_name") or metadata.get("name"),
            picture_url=metadata.get("avatar_url") or metadata.get("picture"),
        )
