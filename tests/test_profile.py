"""Tests for profile metadata updates and the mock identity provider."""

import pytest

from storefront.core.exceptions import AuthRequiredError
from storefront.schemas import OnboardingRequest, ProfileUpdate, UserMetadata
from storefront.services.auth import AuthEvent
from storefront.services.profile import merge_metadata, save_delivery_address, update_profile


class TestMergeMetadata:

    def test_partial_update_keeps_other_fields(self):
        current = UserMetadata(full_name="Asha", phone="9876543210", address="House 4")
        merged = merge_metadata(current, ProfileUpdate(address="House 9"))
        assert merged == UserMetadata(full_name="Asha", phone="9876543210", address="House 9")

    def test_blank_fields_do_not_wipe_values(self):
        current = UserMetadata(full_name="Asha", phone="9876543210")
        merged = merge_metadata(current, ProfileUpdate(full_name="  ", address="House 1"))
        assert merged.full_name == "Asha"
        assert merged.address == "House 1"


class TestUpdateProfile:

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, session, auth):
        with pytest.raises(AuthRequiredError):
            await update_profile(session, auth, ProfileUpdate(address="House 1"))

    @pytest.mark.asyncio
    async def test_onboarding_updates_session_user(self, session, auth):
        result = await auth.sign_up("asha@example.com", "secret123")
        session.sign_in(result.access_token, result.user)
        assert not session.user.user_metadata.is_onboarded

        updated = await update_profile(
            session, auth, OnboardingRequest(full_name="Asha Verma", phone="98765 43210"),
        )

        assert updated.success
        assert session.user.user_metadata.is_onboarded
        assert (await auth.get_user(session.access_token)).user_metadata.full_name == "Asha Verma"

    @pytest.mark.asyncio
    async def test_save_delivery_address(self, session, auth):
        result = await auth.sign_up("asha@example.com", "secret123", UserMetadata(full_name="Asha"))
        session.sign_in(result.access_token, result.user)

        await save_delivery_address(session, auth, "House 4, Ward 2")

        assert session.user.user_metadata.address == "House 4, Ward 2"
        assert session.user.user_metadata.full_name == "Asha"

    @pytest.mark.asyncio
    async def test_expired_session_leaves_user_unchanged(self, session, auth):
        result = await auth.sign_up("asha@example.com", "secret123")
        session.sign_in(result.access_token, result.user)
        await auth.sign_out(result.access_token)

        updated = await update_profile(session, auth, ProfileUpdate(address="House 4"))

        assert not updated.success
        assert updated.error_code == "session_not_found"
        assert session.user.user_metadata.address is None


class TestProfileValidation:

    def test_short_phone_rejected(self):
        with pytest.raises(ValueError, match="at least 10 digits"):
            ProfileUpdate(phone="12345")

    def test_onboarding_requires_name_and_phone(self):
        with pytest.raises(ValueError):
            OnboardingRequest(full_name="Asha")


class TestMockAuthProvider:

    @pytest.mark.asyncio
    async def test_duplicate_sign_up(self, auth):
        await auth.sign_up("asha@example.com", "secret123")
        result = await auth.sign_up("ASHA@example.com", "other-secret")
        assert not result.success
        assert result.error_message == "User already registered"

    @pytest.mark.asyncio
    async def test_sign_in_checks_password(self, auth):
        await auth.sign_up("asha@example.com", "secret123")
        assert (await auth.sign_in("asha@example.com", "secret123")).has_session
        bad = await auth.sign_in("asha@example.com", "wrong-password")
        assert bad.error_message == "Invalid login credentials"

    @pytest.mark.asyncio
    async def test_auth_events_are_published(self, auth):
        events = []
        unsubscribe = auth.on_auth_state_change(lambda event, user: events.append(event))

        result = await auth.sign_up("asha@example.com", "secret123")
        await auth.update_user(result.access_token, UserMetadata(full_name="Asha"))
        await auth.sign_out(result.access_token)
        unsubscribe()
        await auth.sign_in("asha@example.com", "secret123")

        assert events == [AuthEvent.SIGNED_IN, AuthEvent.USER_UPDATED, AuthEvent.SIGNED_OUT]
