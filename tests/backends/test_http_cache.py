"""
Unit tests for the HTTP remote build cache.
"""

import pytest
import requests
import responses

from buildcache.backends.http import (
    HttpBuildCacheService,
    HttpBuildCacheServiceFactory,
    HttpBuildCacheSettings,
    sanitize_for_logging,
)
from buildcache.configuration import BuildCacheConfiguration
from buildcache.context import BuildContext
from buildcache.core.exceptions import BuildCacheServiceError

CACHE_URL = "https://cache.example.com/cache/"


# =============================================================================
# HttpBuildCacheSettings Tests
# =============================================================================


class TestHttpBuildCacheSettings:
    """Tests for settings validation."""

    def test_minimal_settings(self):
        """Test url alone is enough."""
        settings = HttpBuildCacheSettings.from_mapping({"url": CACHE_URL})

        assert settings.url == CACHE_URL
        assert settings.auth is None
        assert settings.allow_untrusted_server is False
        assert settings.timeout == 30

    def test_trailing_slash_added(self):
        """Test keys are appended below the url path."""
        settings = HttpBuildCacheSettings(url="http://x/cache")

        assert settings.url == "http://x/cache/"

    def test_credentials(self):
        """Test credentials become basic auth."""
        settings = HttpBuildCacheSettings.from_mapping(
            {"url": CACHE_URL, "credentials": {"username": "ci", "password": "pw"}}
        )

        assert settings.auth == ("ci", "pw")

    def test_missing_url_rejected(self):
        """Test url is required."""
        with pytest.raises(ValueError, match="requires 'url'"):
            HttpBuildCacheSettings.from_mapping({})

    @pytest.mark.parametrize("url", ["ftp://x/", "cache.example.com", "http://"])
    def test_invalid_url_rejected(self, url):
        """Test only http and https urls are accepted."""
        with pytest.raises(ValueError, match="Invalid build cache url"):
            HttpBuildCacheSettings(url=url)

    def test_incomplete_credentials_rejected(self):
        """Test username without password is rejected."""
        with pytest.raises(ValueError, match="both"):
            HttpBuildCacheSettings.from_mapping(
                {"url": CACHE_URL, "credentials": {"username": "ci"}}
            )

    def test_unknown_setting_rejected(self):
        """Test typos in setting names are reported."""
        with pytest.raises(ValueError, match="Unknown"):
            HttpBuildCacheSettings.from_mapping({"url": CACHE_URL, "ulr": "x"})

    def test_sanitize_credentials(self):
        """Test credentials are redacted for logging."""
        sanitized = sanitize_for_logging(
            {"url": CACHE_URL, "credentials": {"username": "ci", "password": "pw"}}
        )

        assert sanitized == {"url": CACHE_URL, "credentials": "***REDACTED***"}


# =============================================================================
# HttpBuildCacheService Tests
# =============================================================================


class TestHttpBuildCacheService:
    """Tests for GET/PUT mapping."""

    @pytest.fixture
    def service(self):
        service = HttpBuildCacheService(HttpBuildCacheSettings(url=CACHE_URL))
        yield service
        service.close()

    @responses.activate
    def test_load_hit(self, service):
        """Test a 200 response returns the body."""
        responses.add(responses.GET, CACHE_URL + "abc", body=b"data", status=200)

        assert service.load("abc") == b"data"

    @responses.activate
    def test_load_miss(self, service):
        """Test a 404 response is a miss."""
        responses.add(responses.GET, CACHE_URL + "abc", status=404)

        assert service.load("abc") is None

    @responses.activate
    def test_load_server_error(self, service):
        """Test other status codes raise."""
        responses.add(responses.GET, CACHE_URL + "abc", status=500)

        with pytest.raises(BuildCacheServiceError, match="HTTP 500"):
            service.load("abc")

    @responses.activate
    def test_load_connection_error(self, service):
        """Test connection failures raise a service error."""
        responses.add(
            responses.GET,
            CACHE_URL + "abc",
            body=requests.ConnectionError("refused"),
        )

        with pytest.raises(BuildCacheServiceError, match="refused"):
            service.load("abc")

    @responses.activate
    def test_store(self, service):
        """Test a store sends a PUT with the entry."""
        responses.add(responses.PUT, CACHE_URL + "abc", status=201)

        service.store("abc", b"data")

        assert len(responses.calls) == 1
        request = responses.calls[0].request
        assert request.body == b"data"
        assert request.headers["Content-Type"] == "application/octet-stream"

    @responses.activate
    def test_store_rejected(self, service):
        """Test a non-2xx PUT response raises."""
        responses.add(responses.PUT, CACHE_URL + "abc", status=413)

        with pytest.raises(BuildCacheServiceError, match="HTTP 413"):
            service.store("abc", b"data")

    @responses.activate
    def test_basic_auth_sent(self):
        """Test credentials are sent with requests."""
        responses.add(responses.GET, CACHE_URL + "abc", status=404)
        service = HttpBuildCacheService(
            HttpBuildCacheSettings(url=CACHE_URL, username="ci", password="pw")
        )

        service.load("abc")
        service.close()

        assert responses.calls[0].request.headers["Authorization"].startswith("Basic ")


# =============================================================================
# HttpBuildCacheServiceFactory Tests
# =============================================================================


class TestHttpBuildCacheServiceFactory:
    """Tests for creating the HTTP cache from configuration."""

    def _remote(self, **settings):
        return BuildCacheConfiguration().remote("http", lambda r: r.configure(**settings))

    def test_create(self, tmp_path):
        """Test factory creates a service from remote settings."""
        service = HttpBuildCacheServiceFactory().create_build_cache_service(
            self._remote(url=CACHE_URL, timeout=5), BuildContext(root_dir=tmp_path)
        )

        assert isinstance(service, HttpBuildCacheService)
        assert service.settings.timeout == 5
        service.close()

    def test_invalid_settings_raise(self, tmp_path):
        """Test factory reports invalid settings."""
        with pytest.raises(ValueError):
            HttpBuildCacheServiceFactory().create_build_cache_service(
                self._remote(), BuildContext(root_dir=tmp_path)
            )

    @responses.activate
    def test_verify_connection_success(self, tmp_path):
        """Test a reachable server passes the connection check."""
        responses.add(responses.HEAD, CACHE_URL, status=200)

        service = HttpBuildCacheServiceFactory().create_build_cache_service(
            self._remote(url=CACHE_URL, verify_connection=True),
            BuildContext(root_dir=tmp_path),
        )

        assert len(responses.calls) == 1
        service.close()

    @responses.activate
    def test_verify_connection_failure(self, tmp_path):
        """Test an unreachable server fails service creation."""
        responses.add(
            responses.HEAD, CACHE_URL, body=requests.ConnectionError("refused")
        )

        with pytest.raises(BuildCacheServiceError, match="not reachable"):
            HttpBuildCacheServiceFactory().create_build_cache_service(
                self._remote(url=CACHE_URL, verify_connection=True),
                BuildContext(root_dir=tmp_path),
            )
