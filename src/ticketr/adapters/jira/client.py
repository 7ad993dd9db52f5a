"""
Jira API Client - HTTP transport for the Jira REST API (v2).

Owns the requests session, authentication, rate limiting and retries, and
turns HTTP failures into TrackerError subclasses. The JiraAdapter builds on
it to implement the IssueTrackerPort.
"""

import logging
import random
import threading
import time
from typing import Any

import requests

from ticketr.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TrackerError,
    TransientError,
)


# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Endpoints that only read data and may run in dry-run mode
READ_ONLY_POST_ENDPOINTS = frozenset({"search"})


class RateLimiter:
    """
    Token bucket limiting how fast requests leave the client.

    The bucket holds at most burst_size tokens and refills continuously at
    requests_per_second. Each request takes one token, waiting for a refill
    when the bucket is empty. Safe to share between threads.
    """

    def __init__(self, requests_per_second: float = 5.0, burst_size: int = 10):
        self.requests_per_second = requests_per_second
        self.burst_size = max(1, burst_size)

        self._tokens = float(self.burst_size)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

        self._total_requests = 0
        self._total_wait_time = 0.0

        self.logger = logging.getLogger("RateLimiter")

    def acquire(self, timeout: float | None = None) -> bool:
        """
        Take a token, sleeping until one is available.

        Args:
            timeout: Give up after this many seconds (None waits forever).

        Returns:
            True if a token was taken, False on timeout.
        """
        started = time.monotonic()

        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    self._total_requests += 1
                    return True
                wait = (1.0 - self._tokens) / self.requests_per_second

            if timeout is not None:
                elapsed = time.monotonic() - started
                if elapsed >= timeout:
                    return False
                wait = min(wait, timeout - elapsed)

            if wait > 0.01:
                self.logger.debug(f"Rate limit: waiting {wait:.3f}s for token")
            self._total_wait_time += wait
            time.sleep(wait)

    def try_acquire(self) -> bool:
        """Take a token only if one is available right now."""
        with self._lock:
            self._refill()
            if self._tokens < 1.0:
                return False
            self._tokens -= 1.0
            self._total_requests += 1
            return True

    def _refill(self) -> None:
        # Caller holds the lock
        now = time.monotonic()
        self._tokens = min(
            float(self.burst_size),
            self._tokens + (now - self._last_refill) * self.requests_per_second,
        )
        self._last_refill = now

    def slow_down(self) -> None:
        """Halve the request rate after the server rate limited us."""
        with self._lock:
            previous = self.requests_per_second
            self.requests_per_second = max(0.5, previous * 0.5)
        self.logger.warning(
            f"Rate limited by server, reducing rate from {previous:.1f} "
            f"to {self.requests_per_second:.1f} req/s"
        )

    @property
    def stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        with self._lock:
            return {
                "total_requests": self._total_requests,
                "total_wait_time": self._total_wait_time,
                "available_tokens": self._tokens,
                "requests_per_second": self.requests_per_second,
                "burst_size": self.burst_size,
            }


class JiraApiClient:
    """
    Low-level Jira REST API client.

    Features:
    - Basic authentication with email and API token
    - Automatic retry with exponential backoff and jitter for 429/5xx,
      connection errors and timeouts, honoring Retry-After
    - Proactive rate limiting using a token bucket
    - Dry-run mode: writes are logged and skipped, searches still run
    """

    API_VERSION = "2"

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_INITIAL_DELAY = 1.0  # seconds
    DEFAULT_MAX_DELAY = 60.0  # seconds
    DEFAULT_BACKOFF_FACTOR = 2.0
    DEFAULT_JITTER = 0.1  # 10% jitter
    DEFAULT_TIMEOUT = 30.0  # seconds

    DEFAULT_REQUESTS_PER_SECOND = 5.0
    DEFAULT_BURST_SIZE = 10

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        dry_run: bool = False,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        jitter: float = DEFAULT_JITTER,
        timeout: float = DEFAULT_TIMEOUT,
        requests_per_second: float | None = DEFAULT_REQUESTS_PER_SECOND,
        burst_size: int = DEFAULT_BURST_SIZE,
    ):
        """
        Initialize the Jira client.

        Args:
            base_url: Jira instance URL (e.g., https://company.atlassian.net)
            email: User email for authentication
            api_token: API token
            dry_run: If True, don't make write operations
            max_retries: Retry attempts for transient failures
            initial_delay: First retry delay in seconds
            max_delay: Upper bound for any retry delay in seconds
            backoff_factor: Multiplier for exponential backoff
            jitter: Random jitter factor (0.1 = 10% variation)
            timeout: Per request timeout in seconds
            requests_per_second: Request rate (None disables rate limiting)
            burst_size: Burst capacity for rate limiting
        """
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/rest/api/{self.API_VERSION}"
        self.dry_run = dry_run
        self.timeout = timeout
        self.logger = logging.getLogger("JiraApiClient")

        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

        self._rate_limiter: RateLimiter | None = None
        if requests_per_second is not None and requests_per_second > 0:
            self._rate_limiter = RateLimiter(requests_per_second, burst_size)

        self._session = requests.Session()
        self._session.auth = (email, api_token)
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        self._current_user: dict[str, Any] | None = None

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        """
        Make an authenticated request with rate limiting and retries.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint relative to the API root (e.g., 'issue/PROJ-1')
            **kwargs: Extra arguments for requests

        Returns:
            Parsed JSON body, or an empty dict for empty bodies.

        Raises:
            AuthenticationError: On 401 (not retried)
            AccessDeniedError: On 403 (not retried)
            NotFoundError: On 404 (not retried)
            RateLimitError: On 429 after all retries
            TransientError: On 5xx or connection failures after all retries
            TrackerError: On other status codes, other request failures and
                non-JSON bodies
        """
        url = f"{self.api_url}/{endpoint}"
        kwargs.setdefault("timeout", self.timeout)
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            if self._rate_limiter is not None:
                self._rate_limiter.acquire()

            try:
                response = self._session.request(method, url, **kwargs)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt < self.max_retries:
                    delay = self._calculate_delay(attempt)
                    self.logger.warning(
                        f"{type(e).__name__} on {method} {endpoint}, "
                        f"attempt {attempt + 1}/{attempts}, retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue
                raise TransientError(
                    f"Request to {endpoint} failed after {attempts} attempts",
                    issue_key=endpoint,
                    cause=e,
                ) from e
            except requests.exceptions.RequestException as e:
                # Not retried; the request may already have been applied
                raise TrackerError(
                    f"Request to {endpoint} failed: {type(e).__name__}",
                    issue_key=endpoint,
                    cause=e,
                ) from e

            if response.status_code not in RETRYABLE_STATUS_CODES:
                return self._handle_response(response, endpoint)

            if response.status_code == 429 and self._rate_limiter is not None:
                self._rate_limiter.slow_down()

            retry_after = self._get_retry_after(response)
            if attempt < self.max_retries:
                delay = self._calculate_delay(attempt, retry_after)
                self.logger.warning(
                    f"Retryable error {response.status_code} on {method} {endpoint}, "
                    f"attempt {attempt + 1}/{attempts}, retrying in {delay:.2f}s"
                )
                time.sleep(delay)
                continue

            if response.status_code == 429:
                raise RateLimitError(
                    f"Rate limit exceeded for {endpoint} after {attempts} attempts",
                    retry_after=retry_after,
                    issue_key=endpoint,
                )
            raise TransientError(
                f"Server error {response.status_code} for {endpoint} after {attempts} attempts",
                issue_key=endpoint,
            )

        # Unreachable: the loop always returns or raises
        raise TrackerError(f"Request to {endpoint} failed", issue_key=endpoint)

    def _calculate_delay(self, attempt: int, retry_after: int | None = None) -> float:
        """Exponential backoff with jitter, or the server's Retry-After, capped at max_delay."""
        if retry_after is not None:
            base_delay = min(float(retry_after), self.max_delay)
        else:
            base_delay = min(self.initial_delay * (self.backoff_factor**attempt), self.max_delay)

        spread = base_delay * self.jitter
        return max(0.0, base_delay + random.uniform(-spread, spread))

    def _get_retry_after(self, response: requests.Response) -> int | None:
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            # HTTP-date form is not supported
            return None

    def _handle_response(self, response: requests.Response, endpoint: str) -> dict[str, Any]:
        if response.ok:
            if not response.text:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise TrackerError(
                    f"Invalid JSON in response from {endpoint}", issue_key=endpoint, cause=e
                ) from e

        status = response.status_code
        if status == 401:
            raise AuthenticationError(
                "Authentication failed. Check JIRA_EMAIL and JIRA_API_TOKEN."
            )
        if status == 403:
            raise AccessDeniedError(f"Permission denied for {endpoint}", issue_key=endpoint)
        if status == 404:
            raise NotFoundError(f"Not found: {endpoint}", issue_key=endpoint)

        body = response.text[:500] if response.text else ""
        raise TrackerError(f"API error {status}: {body}", issue_key=endpoint)

    # -------------------------------------------------------------------------
    # HTTP Verbs
    # -------------------------------------------------------------------------

    def get(self, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        """Perform a GET request."""
        return self.request("GET", endpoint, **kwargs)

    def post(
        self,
        endpoint: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Perform a POST request.

        In dry-run mode only read-only endpoints (search) are called; other
        POSTs are logged and return an empty dict.
        """
        if self.dry_run and endpoint not in READ_ONLY_POST_ENDPOINTS:
            self.logger.info(f"[DRY-RUN] Would POST to {endpoint}")
            return {}
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(
        self,
        endpoint: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Perform a PUT request (skipped in dry-run mode)."""
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would PUT to {endpoint}")
            return {}
        return self.request("PUT", endpoint, json=json, **kwargs)

    # -------------------------------------------------------------------------
    # Convenience Methods
    # -------------------------------------------------------------------------

    def get_myself(self) -> dict[str, Any]:
        """Get the authenticated user, cached after the first call."""
        if self._current_user is None:
            self._current_user = self.get("myself")
        return self._current_user

    def search(
        self,
        jql: str,
        fields: list[str],
        start_at: int = 0,
        max_results: int = 100,
    ) -> dict[str, Any]:
        """
        Run one page of a JQL search.

        Returns:
            Dictionary with 'issues', 'startAt', 'maxResults' and 'total'.
        """
        return self.post(
            "search",
            json={
                "jql": jql,
                "fields": fields,
                "startAt": start_at,
                "maxResults": max_results,
            },
        )

    def test_connection(self) -> bool:
        """Check that the API is reachable and the credentials are valid."""
        try:
            self.get_myself()
            return True
        except TrackerError:
            return False

    @property
    def is_connected(self) -> bool:
        return self._current_user is not None

    @property
    def rate_limiter(self) -> RateLimiter | None:
        return self._rate_limiter
