"""Unit tests for OAuthProviderRegistry"""

import dataclasses

import pytest

from dashboard_auth.config.settings import Settings
from dashboard_auth.core.auth.errors import UnknownProviderError
from dashboard_auth.core.auth.registry import (
    CREDENTIALS_PROVIDER,
    OAuthProviderRegistry,
    ProviderConfig,
    ProviderKind,
)

pytestmark = pytest.mark.unit


class TestListProviders:
    """Test the public provider list"""

    def test_excludes_credentials(self, registry):
        ids = [p.id for p in registry.list_providers()]

        assert "credentials" not in ids

    def test_no_duplicate_ids(self, registry):
        ids = [p.id for p in registry.list_providers()]

        assert len(ids) == len(set(ids))

    def test_fixed_order_and_names(self, registry):
        providers = registry.list_providers()

        assert [(p.id, p.display_name) for p in providers] == [
            ("github", "GitHub"),
            ("google", "Google"),
            ("twitter", "Twitter"),
            ("facebook", "Facebook"),
        ]

    def test_descriptors_are_immutable(self, registry):
        descriptor = registry.list_providers()[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.id = "other"

    def test_order_follows_fixed_set_not_setting(self):
        settings = Settings(_env_file=None, oauth_providers="facebook, GitHub")

        registry = OAuthProviderRegistry.from_settings(settings)

        assert [p.id for p in registry.list_providers()] == ["github", "facebook"]

    def test_ids_stable_across_builds(self, test_settings):
        first = OAuthProviderRegistry.from_settings(test_settings).list_providers()
        second = OAuthProviderRegistry.from_settings(test_settings).list_providers()

        assert first == second


class TestConstruction:
    """Test registry construction"""

    def test_duplicate_ids_rejected(self):
        github = ProviderConfig(kind=ProviderKind.GITHUB, display_name="GitHub")

        with pytest.raises(ValueError, match="Duplicate"):
            OAuthProviderRegistry([github, github])

    def test_credentials_only_registry_is_empty(self):
        registry = OAuthProviderRegistry([CREDENTIALS_PROVIDER])

        assert registry.list_providers() == ()
        assert len(registry) == 0

    def test_unknown_provider_in_settings_rejected(self):
        settings = Settings(_env_file=None, oauth_providers="github,myspace")

        with pytest.raises(ValueError, match="myspace"):
            OAuthProviderRegistry.from_settings(settings)

    def test_client_credentials_from_settings(self, registry):
        github = registry.get("github")

        assert github.client_id == "gh-client"
        assert github.client_secret == "gh-secret"
        assert "gh-secret" not in repr(github)


class TestGet:
    """Test provider lookup"""

    def test_get_known(self, registry):
        assert registry.get("google").token_url == "https://oauth2.googleapis.com/token"
        assert "google" in registry

    def test_get_unknown_raises(self, registry):
        with pytest.raises(UnknownProviderError):
            registry.get("myspace")

    def test_credentials_not_routable(self, registry):
        assert registry.find("credentials") is None
