"""Njalla JSON-RPC client.

Encapsulates all outbound communication with the Njalla API: the JSON-RPC
envelope, token authentication, and retrying of transient failures with
exponential backoff plus jitter. Structured errors returned by the API are
rejected operations, not faults, and are never retried.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
import requests.exceptions
from loguru import logger

from njalladns.app.context import Context
from njalladns.app.exceptions import (
    APIError,
    ConfigurationError,
    RetriesExhaustedError,
    TransportError,
)

API_ENDPOINT = "https://njal.la/api/1/"
AUTH_SCHEME = "Njalla"
DEFAULT_TIMEOUT = 30.0

# requests raises these before anything goes on the wire
_REQUEST_ERRORS = (
    requests.exceptions.URLRequired,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 0.1  # seconds
    max_delay: float = 2.0
    random_factor: float = 0.5

    @classmethod
    def from_config(cls, cfg) -> "RetryPolicy":
        return cls(
            max_retries=cfg.get_int("retry.max_retries"),
            base_delay=cfg.get_int("retry.base_delay_ms") / 1000,
            max_delay=cfg.get_int("retry.max_delay_ms") / 1000,
            random_factor=cfg.get_float("retry.random_factor"),
        )


def is_retryable(error: Optional[Exception], status_code: int = 0) -> bool:
    """Network errors are always worth another try; HTTP errors only when
    the server is overloaded or rate limiting."""
    if error is not None:
        return True
    return status_code >= 500 or status_code == 429


def calculate_backoff(policy: RetryPolicy, attempt: int) -> float:
    """Delay in seconds before retry number attempt (0 for the first retry)."""
    try:
        delay = policy.base_delay * (2.0**attempt)
    except OverflowError:
        return policy.max_delay
    delay += random.uniform(0, policy.random_factor) * delay
    return min(delay, policy.max_delay)


class JSONRPCClient:
    """HTTP client for the Njalla JSON-RPC endpoint.

    Holds only immutable settings, so a single instance can be shared by
    any number of threads.

    Usage::

        client = JSONRPCClient("s3cr3t-token")
        records = client.call(ctx, "list-records", {"domain": "example.com"},
                              result=parse_record_list)
    """

    def __init__(
        self,
        api_token: str,
        endpoint: str = API_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        if not api_token:
            raise ConfigurationError("API token is required")
        self.api_token = api_token
        self.endpoint = endpoint
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call(
        self,
        ctx: Optional[Context],
        method: str,
        params: Any,
        result: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Invoke method with params and return ``result(payload)``.

        Returns ``None`` when no result converter is given. Raises
        :class:`APIError` for an error envelope, :class:`TransportError` for
        terminal HTTP/serialization failures, :class:`RetriesExhaustedError`
        when every attempt failed transiently, and the context's error if it
        is cancelled or expires.
        """
        ctx = ctx or Context.background()
        envelope = {"jsonrpc": "2.0", "method": method, "params": params, "id": "1"}
        try:
            body = json.dumps(envelope)
        except (TypeError, ValueError) as exc:
            raise TransportError(f"error marshaling request: {exc}") from exc

        last_error: Optional[TransportError] = None
        attempts = max(0, self.retry_policy.max_retries) + 1

        for attempt in range(attempts):
            if attempt > 0:
                backoff = calculate_backoff(self.retry_policy, attempt - 1)
                logger.warning(
                    f"[rpc] {method} failed ({last_error}), "
                    f"retry {attempt}/{attempts - 1} in {backoff:.2f}s"
                )
                if ctx.wait(backoff):
                    err = ctx.err()
                    logger.debug(f"[rpc] {method}: {err} during retry backoff")
                    raise type(err)(f"{method}: {err} during retry backoff") from err

            err = ctx.err()
            if err is not None:
                raise err

            logger.debug(f"[rpc] POST {method} (attempt {attempt + 1}/{attempts})")
            try:
                response = requests.post(
                    self.endpoint,
                    data=body,
                    headers=self._headers(),
                    timeout=self._request_timeout(ctx),
                )
            except _REQUEST_ERRORS as exc:
                raise TransportError(f"error creating request: {exc}") from exc
            except requests.exceptions.RequestException as exc:
                last_error = TransportError(f"error making request: {exc}")
                continue

            status = response.status_code
            if status >= 400:
                last_error = TransportError(f"HTTP error: {status}", status_code=status)
                if is_retryable(None, status):
                    continue
                raise last_error

            try:
                payload = response.json()
            except ValueError as exc:
                last_error = TransportError(f"error unmarshaling response: {exc}")
                continue
            if not isinstance(payload, dict):
                last_error = TransportError(
                    f"error unmarshaling response: expected an object, "
                    f"got {type(payload).__name__}"
                )
                continue

            error = payload.get("error")
            if error is not None:
                if isinstance(error, dict):
                    raise APIError(error.get("code", 0), error.get("message", ""))
                raise APIError(0, str(error))

            if result is None:
                return None
            try:
                return result(payload.get("result"))
            except (TypeError, ValueError, KeyError) as exc:
                raise TransportError(f"error unmarshaling result: {exc}") from exc

        raise RetriesExhaustedError(last_error) from last_error

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"{AUTH_SCHEME} {self.api_token}",
        }

    def _request_timeout(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)
