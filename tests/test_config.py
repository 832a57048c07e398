"""
Unit tests for session options and the environment configuration provider.
"""

import pytest
from pydantic import ValidationError

from sessionly.config import DEFAULT_GC_MAXLIFETIME, EnvConfigProvider, SessionOptions


class TestSessionOptions:
    """Test the option schema."""

    def test_defaults(self):
        options = SessionOptions()

        assert options.use_cookies is True
        assert options.use_only_cookies is True
        assert options.use_trans_sid is False
        assert options.cookie_httponly is True
        assert options.cookie_lifetime == 0
        assert options.gc_maxlifetime == DEFAULT_GC_MAXLIFETIME == 10800
        assert options.cache_limiter == "nocache"

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            SessionOptions(cookieLifetime=10)

    @pytest.mark.parametrize("name", ["my.session", "1abc", ".abc"])
    def test_invalid_name(self, name):
        with pytest.raises(ValidationError):
            SessionOptions(name=name)

    def test_invalid_cache_limiter(self):
        with pytest.raises(ValidationError):
            SessionOptions(cache_limiter="forever")

    def test_negative_lifetime(self):
        with pytest.raises(ValidationError):
            SessionOptions(cookie_lifetime=-1)

    def test_cookie_parameters(self):
        options = SessionOptions(cookie_path="/app", cookie_secure=True)

        assert options.cookie_parameters() == {
            "lifetime": 0,
            "path": "/app",
            "domain": "",
            "secure": True,
            "httponly": True,
        }


class TestEnvConfigProvider:
    """Test environment parsing."""

    def test_session_options_from_env(self):
        provider = EnvConfigProvider({
            "SESSION_NAME": "APPSESSID",
            "SESSION_COOKIE_LIFETIME": "3600",
            "SESSION_COOKIE_SECURE": "true",
            "SESSION_CACHE_LIMITER": "private",
        })

        options = provider.get_session_options()

        assert options.name == "APPSESSID"
        assert options.cookie_lifetime == 3600
        assert options.cookie_secure is True
        assert options.cache_limiter == "private"
        assert options.cookie_path == "/"

    def test_invalid_env_value(self):
        provider = EnvConfigProvider({"SESSION_GC_MAXLIFETIME": "soon"})

        with pytest.raises(ValidationError):
            provider.get_session_options()

    def test_storage_config(self):
        provider = EnvConfigProvider({
            "SESSION_BACKEND": "Redis",
            "REDIS_URL": "redis://cache:6379/1",
        })

        config = provider.get_storage_config()

        assert config.backend == "redis"
        assert config.redis_url == "redis://cache:6379/1"
        assert config.save_path is None

    def test_storage_defaults(self):
        config = EnvConfigProvider({}).get_storage_config()

        assert config.backend == "memory"

    def test_api_config(self):
        config = EnvConfigProvider({"API_PORT": "9000", "API_DEBUG": "TRUE"}).get_api_config()

        assert config.port == 9000
        assert config.debug is True
        assert config.host == "0.0.0.0"
        assert config.log_level == "INFO"
