"""MoinMoin HTTP client with session-cookie authentication, retries and rate limiting."""

import logging
import os
import time
from typing import Any, Callable, Dict, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from models import RunConfig

logger = logging.getLogger('moin_markdown_migrator.client')

if os.getenv('USE_SYSTEM_CA') in ('1', 'true', 'True', 'TRUE'):
    import truststore
    truststore.inject_into_ssl()
    logger.info("Using system CA certificate store")


class RateLimiter:
    """Enforces a minimum interval between consecutive requests."""

    def __init__(
        self,
        min_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self.last_request_time: Optional[float] = None

    def wait(self) -> float:
        """
        Block until the next request may be sent.

        Returns:
            Seconds slept
        """
        slept = 0.0
        if self.min_interval > 0 and self.last_request_time is not None:
            elapsed = self._clock() - self.last_request_time
            if elapsed < self.min_interval:
                slept = self.min_interval - elapsed
                logger.debug(f"Rate limiting: sleeping for {slept:.2f}s")
                self._sleep(slept)
        self.last_request_time = self._clock()
        return slept


class MoinClient:
    """HTTP client for a MoinMoin wiki, authenticated through its session cookie."""

    def __init__(
        self,
        wiki_url: str,
        session_cookie_name: Optional[str] = None,
        session_cookie: Optional[str] = None,
        verify_ssl: bool = True,
        timeout: float = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0
    ):
        """
        Initialize the client.

        Args:
            wiki_url: Wiki URL without trailing slash (e.g. "https://wiki.example.org/mywiki")
            session_cookie_name: Name of the MoinMoin session cookie
            session_cookie: Value of the session cookie (None for anonymous access)
            verify_ssl: Whether to verify SSL certificates
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor between retries
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
        """
        self.wiki_url = wiki_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = RateLimiter(rate_limit)

        self.session = requests.Session()

        if session_cookie:
            if not session_cookie_name:
                raise ValueError("A session cookie value requires a session cookie name")
            self.session.cookies.set(session_cookie_name, session_cookie)
            logger.info(f"Initialized wiki client with session cookie '{session_cookie_name}' for {self.wiki_url}")
        else:
            logger.info(f"Initialized anonymous wiki client for {self.wiki_url}")

        self.session.verify = verify_ssl
        if not verify_ssl:
            logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    def url_for(self, path: str) -> str:
        """Absolute URL of a path below the wiki URL."""
        return f"{self.wiki_url}/{path.lstrip('/')}"

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        GET a wiki path, respecting the rate limit.

        The response is returned whatever its status code; callers decide
        which statuses are fatal.

        Raises:
            requests.exceptions.RequestException: For network errors
        """
        self.rate_limiter.wait()

        url = self.url_for(path)
        start_time = time.time()
        logger.debug(f"Request: GET {url} params={params}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: GET {url}")
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: GET {url} - {str(e)}")
            raise

        elapsed = time.time() - start_time
        logger.debug(f"Response: {response.status_code} {response.url} ({elapsed:.3f}s)")
        return response

    @classmethod
    def from_config(cls, run_config: RunConfig) -> 'MoinClient':
        """Create a client from the run configuration."""
        return cls(
            wiki_url=run_config.wiki_url,
            session_cookie_name=run_config.session_cookie_name,
            session_cookie=run_config.session_cookie,
            verify_ssl=run_config.verify_ssl,
            timeout=run_config.request_timeout,
            max_retries=run_config.max_retries,
            rate_limit=run_config.request_interval
        )
