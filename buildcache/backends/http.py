"""
HTTP remote build cache.

Entries are stored on an HTTP server under ``<url><key>``: a ``GET``
loads an entry, a ``PUT`` stores one. Any server that understands these
two verbs (nginx with WebDAV, a dedicated cache node, ...) can be used.

Usage:
    configuration.remote('http', lambda remote: remote.configure(
        url='https://cache.example.com/cache/',
        credentials={'username': 'ci', 'password': '***'},
    ))

Settings:
    url: Base URL (required, http or https)
    credentials: {'username': ..., 'password': ...} for basic auth
    allow_untrusted_server: Skip TLS certificate verification
    timeout: Request timeout in seconds (default: 30)
    verify_connection: Send a HEAD request to ``url`` when the cache is created
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import requests

from buildcache.configuration import RemoteBuildCache
from buildcache.context import BuildContext
from buildcache.core.exceptions import BuildCacheServiceError
from buildcache.service import BuildCacheService, BuildCacheServiceFactory

logger = logging.getLogger(__name__)

HTTP_TYPE = "http"
DEFAULT_TIMEOUT = 30

_KNOWN_SETTINGS = {
    "url",
    "credentials",
    "allow_untrusted_server",
    "timeout",
    "verify_connection",
}


@dataclass
class HttpBuildCacheSettings:
    """
    Validated HTTP build cache settings.

    Example:
        >>> settings = HttpBuildCacheSettings.from_mapping({'url': 'http://x/'})
        >>> settings.url
        'http://x/'
    """

    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    allow_untrusted_server: bool = False
    timeout: float = DEFAULT_TIMEOUT
    verify_connection: bool = False

    def __post_init__(self):
        """Validate settings after initialization."""
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"Invalid build cache url: {self.url!r} (expected http:// or https://)"
            )
        # Keys are appended to the url
        if not self.url.endswith("/"):
            self.url += "/"

        if (self.username is None) != (self.password is None):
            raise ValueError("credentials require both 'username' and 'password'")

        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "HttpBuildCacheSettings":
        """
        Build settings from a remote cache settings mapping.

        Raises:
            ValueError: If required settings are missing or invalid
        """
        unknown = set(settings) - _KNOWN_SETTINGS
        if unknown:
            raise ValueError(
                f"Unknown http build cache settings: {', '.join(sorted(unknown))}"
            )
        if not settings.get("url"):
            raise ValueError("http build cache requires 'url' setting")

        credentials = settings.get("credentials") or {}
        return cls(
            url=str(settings["url"]),
            username=credentials.get("username"),
            password=credentials.get("password"),
            allow_untrusted_server=bool(settings.get("allow_untrusted_server", False)),
            timeout=float(settings.get("timeout", DEFAULT_TIMEOUT)),
            verify_connection=bool(settings.get("verify_connection", False)),
        )

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        if self.username is None:
            return None
        return (self.username, self.password)


def sanitize_for_logging(settings: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive values for safe logging.

    Args:
        settings: Remote cache settings

    Returns:
        Copy of settings with credentials and secrets redacted
    """
    sanitized = {}
    for key, value in settings.items():
        if (
            key == "credentials"
            or "password" in key.lower()
            or "secret" in key.lower()
            or "token" in key.lower()
        ):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = value
    return sanitized


class HttpBuildCacheService(BuildCacheService):
    """
    Build cache stored on an HTTP server.

    Each thread uses its own ``requests.Session`` so concurrent task
    executions do not share connection state.
    """

    def __init__(self, settings: HttpBuildCacheSettings):
        self.settings = settings
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def description(self) -> str:
        return f"HTTP {self.settings.url}"

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.auth = self.settings.auth
            session.verify = not self.settings.allow_untrusted_server
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _entry_url(self, key: str) -> str:
        return f"{self.settings.url}{key}"

    def check_connection(self) -> None:
        """
        Send a HEAD request to the cache url.

        Raises:
            BuildCacheServiceError: If the server cannot be reached or rejects the request
        """
        try:
            response = self._session().head(
                self.settings.url, timeout=self.settings.timeout
            )
        except requests.RequestException as e:
            raise BuildCacheServiceError(
                f"HTTP build cache {self.settings.url} is not reachable: {e}"
            ) from e

        if response.status_code >= 400 and response.status_code != 404:
            raise BuildCacheServiceError(
                f"HTTP build cache {self.settings.url} returned HTTP {response.status_code}"
            )

    def load(self, key: str) -> Optional[bytes]:
        url = self._entry_url(key)
        try:
            response = self._session().get(url, timeout=self.settings.timeout)
        except requests.RequestException as e:
            raise BuildCacheServiceError(f"Loading {url} failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise BuildCacheServiceError(
                f"Loading {url} failed: HTTP {response.status_code}"
            )
        return response.content

    def store(self, key: str, value: bytes) -> None:
        url = self._entry_url(key)
        try:
            response = self._session().put(
                url,
                data=value,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise BuildCacheServiceError(f"Storing {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise BuildCacheServiceError(
                f"Storing {url} failed: HTTP {response.status_code}"
            )

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()


class HttpBuildCacheServiceFactory(BuildCacheServiceFactory):
    """Creates :class:`HttpBuildCacheService` from a remote configuration."""

    def create_build_cache_service(
        self, descriptor: RemoteBuildCache, context: BuildContext
    ) -> HttpBuildCacheService:
        settings = HttpBuildCacheSettings.from_mapping(descriptor.settings)
        logger.debug(
            f"Configured HTTP build cache: {sanitize_for_logging(descriptor.settings)}"
        )
        if settings.allow_untrusted_server:
            logger.warning(
                f"TLS certificate verification is disabled for {settings.url}"
            )

        service = HttpBuildCacheService(settings)
        if settings.verify_connection:
            try:
                service.check_connection()
            except BuildCacheServiceError:
                service.close()
                raise
        return service


__all__ = [
    "HTTP_TYPE",
    "HttpBuildCacheSettings",
    "HttpBuildCacheService",
    "HttpBuildCacheServiceFactory",
    "sanitize_for_logging",
]
