"""HTTP plumbing shared by the remote speech and translation clients."""

import logging
import threading
import time
from typing import Any, Callable, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
USER_AGENT = "VidScribe/0.1"


def create_session(api_key: str) -> requests.Session:
    """Returns a session that sends the bearer credential on every request."""
    session = requests.Session()
    session.headers.update({
        'Authorization': f'Bearer {api_key}',
        'Accept': 'application/json',
        'User-Agent': USER_AGENT,
    })
    return session


class ThreadLocalSession:
    """
    Hands every thread its own session built by ``factory``.

    A ``requests.Session`` is not documented as thread-safe, and chunk uploads
    run on a thread pool when ``max_workers > 1``.
    """

    def __init__(self, factory: Callable[[], requests.Session]):
        self._factory = factory
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._factory()
            self._local.session = session
        return session

    @property
    def headers(self):
        return self.session.headers

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.session.post(url, **kwargs)


class RetryingPoster:
    """
    POSTs with a hard timeout and bounded exponential backoff.

    Connection errors, timeouts, HTTP 408/429 and 5xx are retried up to
    ``max_retries`` times, sleeping ``backoff * 2**attempt`` seconds in between.
    The last response is returned even when it is still an error; the caller
    decides which exception kind to raise. Exhausted network errors are
    re-raised as the original ``requests`` exception.
    """

    def __init__(
        self,
        session: Any,
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep = sleep

    def post(self, url: str, *, before_attempt: Optional[Callable[[], None]] = None, **kwargs: Any) -> Any:
        """
        Args:
            url: Target URL.
            before_attempt: Called before every attempt, e.g. to rewind an upload.
            **kwargs: Passed through to ``session.post``.
        """
        attempt = 0
        while True:
            if before_attempt is not None:
                before_attempt()
            try:
                response = self.session.post(url, timeout=self.timeout, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt >= self.max_retries:
                    logger.error(f"POST {url} failed after {attempt + 1} attempts: {e}")
                    raise
                wait_time = self.backoff * (2 ** attempt)
                logger.warning(f"POST {url} failed ({e}); retrying in {wait_time:.1f}s ({attempt + 1}/{self.max_retries})")
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= self.max_retries:
                    return response
                wait_time = self.backoff * (2 ** attempt)
                logger.warning(f"POST {url} returned HTTP {response.status_code}; retrying in {wait_time:.1f}s ({attempt + 1}/{self.max_retries})")
            self._sleep(wait_time)
            attempt += 1
