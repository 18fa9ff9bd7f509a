"""
Stockroom — User Directory Client
===================================

What:  Fetches users from an external HTTP directory (an HRIS stand-in,
       https://jsonplaceholder.typicode.com by default).
How:   httpx.AsyncClient with a base URL and timeout, wrapped in a tenacity
       retry policy (exponential backoff + jitter) for transient failures.
Who:   Called by GET /users/{id} (routes/users.py).

Retry Policy:
    Retried:     transport errors (connect/read timeouts, resets), 429 and 5xx
    Not retried: 404 and other 4xx (the answer will not change)
    After the last attempt the original error is re-raised and mapped:
        404         → NotFoundError (404)
        anything    → UpstreamServiceError (502)
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from stockroom.exceptions import NotFoundError, UpstreamServiceError
from stockroom.schemas.user import UserResponse

logger = logging.getLogger(__name__)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class UserDirectoryClient:
    """
    Read-only client for the user directory.

    Args:
        http:         Shared AsyncClient whose base_url points at the directory
        max_attempts: Total tries per lookup (including the first)
        min_wait:     Initial backoff in seconds
        max_wait:     Backoff ceiling in seconds
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        max_attempts: int = 3,
        min_wait: float = 1,
        max_wait: float = 10,
    ):
        self.http = http
        self.max_attempts = max_attempts
        self._retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential_jitter(
                initial=min_wait,
                max=max_wait,
                jitter=1 if max_wait else 0,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _fetch(self, user_id: int) -> httpx.Response:
        response = await self.http.get(f"/users/{user_id}")
        response.raise_for_status()
        return response

    async def get_user(self, user_id: int) -> UserResponse:
        """
        Look up one user by numeric id.

        Raises:
            NotFoundError: the directory has no such user
            UpstreamServiceError: the directory failed or returned garbage
        """
        try:
            response = await self._retrying.copy()(self._fetch, user_id)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise NotFoundError(resource="user", resource_id=str(user_id))
            logger.error("User directory returned HTTP %d for user %d", status, user_id)
            raise UpstreamServiceError(context={"upstream_status": status})
        except httpx.HTTPError as e:
            logger.error(
                "User directory unreachable after %d attempts: %s",
                self.max_attempts,
                str(e),
            )
            raise UpstreamServiceError(context={"error_type": type(e).__name__})

        try:
            return UserResponse.model_validate(response.json())
        except ValueError as e:
            logger.error("User directory sent an unreadable user %d: %s", user_id, str(e))
            raise UpstreamServiceError(context={"error_type": type(e).__name__})

    async def close(self) -> None:
        await self.http.aclose()
