"""Tests for environment-driven settings."""

from wadispatch.settings import Settings, get_settings


class TestSettings:
    def test_api_key_config_requires_both_credentials(self):
        assert Settings(api_instance_id="abc", api_access_token=None).api_key_config() is None
        assert Settings(api_instance_id=None, api_access_token="tok").api_key_config() is None

    def test_api_key_config(self):
        config = Settings(api_instance_id="abc", api_access_token="tok").api_key_config()
        assert config.instance_id == "abc"
        assert config.access_token == "tok"

    def test_explicit_endpoint(self):
        settings = Settings(api_instance_id="abc", api_access_token="tok", api_endpoint="https://wa.example.com/send")
        assert settings.api_key_config().endpoint == "https://wa.example.com/send"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
