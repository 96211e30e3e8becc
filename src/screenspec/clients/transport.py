"""Network Transport - the collaborator behind `request` actions."""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import pybreaker
from returns.result import Failure, Result, Success

from ..core.json import JSONParseError, parse_json, safe_json_dumps
from ..core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransportError:
    """Failure description written to a request's errorPath."""

    message: str
    status_code: int | None = None
    code: str | None = None
    body: Any = None

    def to_state(self) -> dict[str, Any]:
        state: dict[str, Any] = {"statusCode": self.status_code, "message": self.message}
        if self.code is not None:
            state["code"] = self.code
        if self.body is not None:
            state["body"] = self.body
        return state


class Transport(Protocol):
    """Performs one request and returns the decoded body or a TransportError. Never raises."""

    async def perform(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, Any] | None = None,
    ) -> Result[Any, TransportError]:
        ...


class _ServerError(Exception):
    """5xx response; counted as a breaker failure."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return parse_json(response.content)
    except JSONParseError:
        return response.text


class HttpTransport:
    """
    httpx-backed transport with circuit breaker protection.

    Connection errors, timeouts and 5xx responses count toward opening the
    breaker; 4xx responses are returned as failures without tripping it.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        fail_max: int = 5,
        reset_timeout: int = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize transport with circuit breaker.

        Args:
            base_url: Prefix for relative request urls
            timeout: Request timeout in seconds
            fail_max: Consecutive failures before the breaker opens
            reset_timeout: Seconds before an open breaker lets a trial call through
            client: Pre-built client (tests, shared pools)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

        class BreakerListener(pybreaker.CircuitBreakerListener):
            """Listener for circuit breaker state changes."""

            def state_change(self, cb, old_state, new_state):
                logger.warning(
                    "breaker_state_change",
                    breaker=cb.name,
                    from_state=str(old_state),
                    to_state=str(new_state),
                )

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            name="screenspec-http",
            listeners=[BreakerListener()],
        )

    async def perform(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, Any] | None = None,
    ) -> Result[Any, TransportError]:
        """
        Send a request.

        Args:
            method: HTTP method
            url: Absolute url, or relative to base_url
            body: JSON-encodable request body
            headers: Extra request headers
            query: Query string parameters

        Returns:
            Success with the decoded body, or Failure with a TransportError
        """
        content = None
        headers = dict(headers or {})
        if body is not None:
            content = safe_json_dumps(body).encode("utf-8")
            headers.setdefault("Content-Type", "application/json")

        try:
            with self._breaker.calling():
                response = await self._client.request(
                    method,
                    url,
                    content=content,
                    headers=headers,
                    params=query or None,
                )
                if response.status_code >= 500:
                    raise _ServerError(response)
        except pybreaker.CircuitBreakerError:
            logger.warning("request_rejected_breaker_open", url=url)
            return Failure(TransportError("Service unavailable (circuit open)", code="circuit_open"))
        except _ServerError as e:
            return Failure(self._http_failure(e.response))
        except httpx.TimeoutException as e:
            logger.warning("request_timeout", url=url, error=str(e))
            return Failure(TransportError(f"Request timed out: {e}", code="timeout"))
        except httpx.HTTPError as e:
            logger.warning("request_failed", url=url, error=str(e))
            return Failure(TransportError(f"Network error: {e}", code="network_error"))

        if response.status_code >= 400:
            return Failure(self._http_failure(response))

        logger.debug("request_succeeded", url=url, status=response.status_code)
        return Success(_decode_body(response))

    @staticmethod
    def _http_failure(response: httpx.Response) -> TransportError:
        logger.warning("request_http_error", url=str(response.url), status=response.status_code)
        return TransportError(
            message=response.reason_phrase or f"HTTP {response.status_code}",
            status_code=response.status_code,
            code="http_error",
            body=_decode_body(response),
        )

    @property
    def breaker(self) -> pybreaker.CircuitBreaker:
        return self._breaker

    async def aclose(self) -> None:
        await self._client.aclose()
