"""
Profile reconciliation.

Keeps the local profiles collection in step with identities issued by the
backend. Profile bookkeeping is secondary to issuing the identity, so
failures are logged and never raised to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from porter.models import Identity, Profile
from porter.services.supabase_client import IdentityBackendError

logger = logging.getLogger(__name__)

# Provider metadata keys tried after the identity's own name, in order
FALLBACK_NAME_KEYS = ('full_name', 'user_name')
DEFAULT_DISPLAY_NAME = 'User'


def derive_display_name(identity: Identity, explicit_name: str = None) -> str:
    """
    Pick a display name for a new profile.

    Order: explicit signup-time name, then provider `name`, `full_name`,
    `user_name`, else "User".
    """
    if explicit_name:
        return explicit_name

    if identity.name:
        return identity.name

    for key in FALLBACK_NAME_KEYS:
        value = identity.metadata.get(key)
        if value:
            return value

    return DEFAULT_DISPLAY_NAME


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProfileReconciler:
    """Ensures every identity has exactly one profile row"""

    def __init__(self, client):
        """
        Args:
            client: Identity backend client (SupabaseClient or compatible)
        """
        self.client = client

    def ensure_profile(self, identity: Identity, display_name: str = None, token: str = None) -> Optional[Profile]:
        """
        Create the profile for `identity`, or refresh its copied fields.

        Safe to call any number of times, including concurrently for the same
        identity: the insert never overwrites an existing row, so created_at
        is set once.

        Args:
            identity: The authenticated identity
            display_name: Name the user typed at signup, if any
            token: Caller's access token, used for the record calls when given

        Returns:
            The stored profile, or None if the backend call failed
        """
        try:
            existing = self.client.select_profile(identity.id, token=token)
            now = _now()

            if existing is None:
                profile = Profile(
                    id=identity.id,
                    name=derive_display_name(identity, display_name),
                    email=identity.email,
                    avatar_url=identity.avatar_url,
                    created_at=now,
                    updated_at=now,
                )
                self.client.upsert_profile(profile.to_dict(), ignore_duplicates=True, token=token)
                logger.info(f"Created profile for identity {identity.id}")
                # A concurrent insert may have won; its row is the one kept
                return self.client.select_profile(identity.id, token=token) or profile

            profile = Profile(
                id=existing.id,
                name=display_name or existing.name,
                email=identity.email or existing.email,
                avatar_url=identity.avatar_url or existing.avatar_url,
                created_at=existing.created_at,
                updated_at=now,
            )
            update = profile.to_dict()
            del update['created_at']
            self.client.upsert_profile(update, ignore_duplicates=False, token=token)
            return profile

        except IdentityBackendError as e:
            logger.warning(f"Could not write profile for identity {identity.id}: {e}")
            return None
