"""
Stockroom — User Directory Client Tests
=========================================

What:  UserDirectoryClient against httpx.MockTransport, and GET /users/{id}.
How:   Backoff waits are set to zero so retries run instantly.

What we test:
    ✅ 200 → name and email projection
    ✅ 404 → NotFoundError (no retry)
    ✅ 5xx → retried, then UpstreamServiceError
    ✅ Transient 503 followed by 200 → success
"""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from stockroom.exceptions import NotFoundError, UpstreamServiceError
from stockroom.main import create_app
from stockroom.routes.users import get_user_directory
from stockroom.services.user_directory import UserDirectoryClient

LEANNE = {
    "id": 1,
    "name": "Leanne Graham",
    "username": "Bret",
    "email": "Sincere@april.biz",
    "address": {"city": "Gwenborough"},
}


def directory_with(handler, max_attempts=3):
    """Client whose HTTP traffic is answered by `handler`; records each request."""
    calls = []

    def recording(request):
        calls.append(request)
        return handler(request)

    http = httpx.AsyncClient(
        transport=httpx.MockTransport(recording),
        base_url="https://directory.test",
    )
    client = UserDirectoryClient(http, max_attempts=max_attempts, min_wait=0, max_wait=0)
    return client, calls


class TestUserDirectoryClient:

    @pytest.mark.asyncio
    async def test_returns_name_and_email(self):
        client, calls = directory_with(lambda request: httpx.Response(200, json=LEANNE))

        user = await client.get_user(1)

        assert user.name == "Leanne Graham"
        assert user.email == "Sincere@april.biz"
        assert calls[0].url.path == "/users/1"
        await client.close()

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_found_without_retry(self):
        client, calls = directory_with(lambda request: httpx.Response(404, json={}))

        with pytest.raises(NotFoundError):
            await client.get_user(99)

        assert len(calls) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_server_errors_are_retried_then_fail(self):
        client, calls = directory_with(lambda request: httpx.Response(500), max_attempts=3)

        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.get_user(1)

        assert len(calls) == 3
        assert exc_info.value.context["upstream_status"] == 500
        await client.close()

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self):
        responses = [httpx.Response(503), httpx.Response(200, json=LEANNE)]
        client, calls = directory_with(lambda request: responses.pop(0))

        user = await client.get_user(1)

        assert user.name == "Leanne Graham"
        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_errors_become_upstream_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, calls = directory_with(refuse, max_attempts=2)

        with pytest.raises(UpstreamServiceError):
            await client.get_user(1)

        assert len(calls) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_unreadable_user_is_upstream_error(self):
        client, _ = directory_with(lambda request: httpx.Response(200, json={"id": 1}))

        with pytest.raises(UpstreamServiceError):
            await client.get_user(1)
        await client.close()


@pytest_asyncio.fixture
async def users_client():
    directory, _ = directory_with(
        lambda request: (
            httpx.Response(200, json=LEANNE)
            if request.url.path == "/users/1"
            else httpx.Response(404)
        )
    )
    app = create_app("users")
    app.dependency_overrides[get_user_directory] = lambda: directory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    await directory.close()


class TestUserEndpoint:

    @pytest.mark.asyncio
    async def test_get_user(self, users_client):
        response = await users_client.get("/users/1")

        assert response.status_code == 200
        assert response.json() == {"name": "Leanne Graham", "email": "Sincere@april.biz"}

    @pytest.mark.asyncio
    async def test_unknown_user_returns_404(self, users_client):
        response = await users_client.get("/users/42")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_non_numeric_id_rejected(self, users_client):
        response = await users_client.get("/users/abc")
        assert response.status_code == 422
