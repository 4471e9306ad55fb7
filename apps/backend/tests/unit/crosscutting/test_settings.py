"""
Name: Settings Unit Tests

Responsibilities:
  - Validate parsing helpers (origins, verification secrets)
  - Validate production hardening of the signing secret
  - Validate numeric guards on business rules
"""

import pytest
from pydantic import ValidationError

from corbez.crosscutting.config import Settings

pytestmark = pytest.mark.unit


class TestSettingsHelpers:
    def test_allowed_origins_list(self):
        settings = Settings(allowed_origins=" https://a.test, ,https://b.test ")
        assert settings.get_allowed_origins_list() == [
            "https://a.test",
            "https://b.test",
        ]

    def test_verification_secrets_current_first(self):
        settings = Settings(
            signing_secret="current", previous_signing_secrets="old-1, old-2,"
        )
        assert settings.get_verification_secrets() == ["current", "old-1", "old-2"]

    def test_env_flags(self):
        assert Settings(app_env="CI").is_test()
        assert Settings(app_env="Production", signing_secret="x" * 32).is_production()


class TestSettingsValidation:
    def test_empty_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(signing_secret="   ")

    def test_production_requires_custom_secret(self):
        with pytest.raises(ValidationError):
            Settings(app_env="production")

    def test_production_requires_long_secret(self):
        with pytest.raises(ValidationError):
            Settings(app_env="production", signing_secret="short-secret")

    @pytest.mark.parametrize(
        "field", ["warning_threshold", "auto_suspend_days", "rate_limit_max"]
    )
    def test_positive_guards(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})
