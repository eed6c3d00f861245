"""
Profile Service

Profile edits, onboarding and the delivery address all live in the auth
identity's metadata. Every update merges the submitted fields over the
current metadata so a partial form never wipes the other fields.
"""

import logging
from typing import Union

from storefront.core.exceptions import AuthRequiredError
from storefront.schemas import OnboardingRequest, ProfileUpdate, UserMetadata
from storefront.services.auth.base import AuthResult, BaseAuthProvider
from storefront.state.session import SessionState

logger = logging.getLogger(__name__)


def merge_metadata(current: UserMetadata, update: ProfileUpdate) -> UserMetadata:
    """Overlay the fields present in ``update`` on ``current``."""
    changes = update.model_dump(exclude_none=True)
    return current.model_copy(update=changes)


async def update_profile(
    session: SessionState,
    auth: BaseAuthProvider,
    update: Union[ProfileUpdate, OnboardingRequest],
) -> AuthResult:
    """
    Save profile fields for the signed-in user.

    On success the session's cached user is replaced by the updated one.

    Raises:
        AuthRequiredError: No signed-in user
    """
    if not session.is_authenticated:
        raise AuthRequiredError("Please sign in to update your profile.")

    metadata = merge_metadata(session.user.user_metadata, update)
    result = await auth.update_user(session.access_token, metadata)

    if result.success and result.user is not None:
        session.user = result.user
        logger.info(f"Profile updated for user {result.user.id}")
    else:
        logger.warning(f"Profile update failed: {result.error_message}")
    return result


async def save_delivery_address(
    session: SessionState,
    auth: BaseAuthProvider,
    address: str,
) -> AuthResult:
    return await update_profile(session, auth, ProfileUpdate(address=address))
