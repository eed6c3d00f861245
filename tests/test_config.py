"""Tests for settings loading and the environment-driven service factories."""

from decimal import Decimal

import pytest

from storefront.core.config import EnvironmentMode, Settings, get_settings
from storefront.services.auth import MockAuthProvider, SupabaseAuthProvider, get_auth_provider
from storefront.services.platform import MockDataPlatform, SupabaseDataPlatform, get_data_platform


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.minimum_order_amount == Decimal("200")
        assert settings.delivery_charge == Decimal("30")
        assert settings.free_delivery_zone == "Madhuban"
        assert settings.delivery_zones_list[:2] == ["Madhuban", "Talimpur"]

    def test_env_mode_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "Staging")
        get_settings.cache_clear()
        settings = get_settings()
        assert settings.env_mode == EnvironmentMode.STAGING
        assert settings.use_real_services

    def test_invalid_env_mode(self):
        with pytest.raises(ValueError, match="Invalid env_mode"):
            Settings(env_mode="qa")

    def test_zones_list_strips_blanks(self):
        assert Settings(delivery_zones=" A , ,B,").delivery_zones_list == ["A", "B"]

    def test_production_config_reports_missing_keys(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        settings = Settings(env_mode="production")
        assert settings.validate_production_config() == ["SUPABASE_URL", "SUPABASE_ANON_KEY"]
        assert Settings(env_mode="development").validate_production_config() == []


class TestFactories:

    def test_development_uses_mocks(self):
        assert isinstance(get_data_platform(), MockDataPlatform)
        assert isinstance(get_auth_provider(), MockAuthProvider)

    def test_production_uses_supabase(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "production")
        monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        get_settings.cache_clear()

        assert isinstance(get_data_platform(), SupabaseDataPlatform)
        assert isinstance(get_auth_provider(), SupabaseAuthProvider)
