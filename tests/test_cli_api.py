import pytest
import httpx

from bugtracker_cli.api import APIError, BugTrackerAPI


@pytest.mark.asyncio
async def test_register_and_me(api_factory, registration):
    """Test the token from registration authenticates later calls"""
    async with api_factory() as api:
        data = await api.register(**registration)

    assert data["message"] == "User registered successfully"

    async with api_factory(data["token"]) as api:
        me = await api.get_me()

    assert me["user"]["username"] == "jdev"
    assert me["user"]["firstName"] == "John"


@pytest.mark.asyncio
async def test_error_carries_status_and_message(api, registration):
    """Test that non-2xx responses raise APIError with the server message"""
    await api.register(**registration)

    with pytest.raises(APIError) as exc_info:
        await api.login(registration["email"], "wrong-password")

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_validation_details(api):
    """Test that field-level messages are exposed"""
    with pytest.raises(APIError) as exc_info:
        await api.create_bug({"title": "x" * 201, "description": "too long"})

    assert exc_info.value.status_code == 400
    assert any(d.startswith("title:") for d in exc_info.value.details)
    assert "title:" in str(exc_info.value)


@pytest.mark.asyncio
async def test_bug_crud(api):
    """Test create, filter, update and delete through the client"""
    created = await api.create_bug({
        "title": "Login fails",
        "description": "500 on submit",
        "priority": "high",
    })
    await api.create_bug({"title": "Logo blurry", "description": "Retina", "priority": "low"})

    high = await api.list_bugs(status="open", priority="high")
    assert [bug["id"] for bug in high] == [created["id"]]

    found = await api.list_bugs(search="LOGIN")
    assert [bug["id"] for bug in found] == [created["id"]]

    updated = await api.update_bug(created["id"], {"status": "resolved"})
    assert updated["status"] == "resolved"
    assert (await api.get_bug(created["id"]))["status"] == "resolved"

    deleted = await api.delete_bug(created["id"])
    assert deleted["deletedBug"]["id"] == created["id"]

    with pytest.raises(APIError) as exc_info:
        await api.get_bug(created["id"])
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_health(api):
    """Test the API health endpoint"""
    health = await api.health_check()

    assert health["service"] == "bugtracker-backend"


@pytest.mark.asyncio
async def test_connection_error_becomes_api_error():
    """Test that transport failures surface as APIError with status 0"""
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    async with BugTrackerAPI("http://test/api", transport=httpx.MockTransport(refuse)) as api:
        with pytest.raises(APIError) as exc_info:
            await api.list_bugs()

    assert exc_info.value.status_code == 0
    assert "Cannot connect" in exc_info.value.message
