import httpx
import pytest
import pytest_asyncio

from api.main import create_app
from lifecycle import LifecycleServer


@pytest.fixture
def lifecycle():
    return LifecycleServer()


@pytest_asyncio.fixture
async def client(lifecycle):
    app = create_app(lifecycle)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_root_is_plain_ok(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.text == "ok"


@pytest.mark.asyncio
async def test_probes_before_ready(client):
    response = await client.get("/health")
    assert response.status_code == 503
    assert response.json() == {"status": "error", "error": "SERVER_IS_NOT_READY"}

    response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "error", "error": "SERVER_IS_NOT_READY"}

    response = await client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "info": "SERVER_IS_NOT_SHUTTING_DOWN"}


@pytest.mark.asyncio
async def test_probes_when_ready(client, lifecycle):
    await lifecycle.set_ready(True)

    for path in ("/health", "/ready"):
        response = await client.get(path)
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "info": "SERVER_IS_READY"}


@pytest.mark.asyncio
async def test_probes_while_shutting_down(client, lifecycle):
    await lifecycle.set_ready(True)
    handle = lifecycle.get_beacon_tracker().create_beacon({"job": "report"})
    lifecycle.trigger_shutdown("TEST")

    for path in ("/health", "/live", "/ready"):
        response = await client.get(path)
        assert response.status_code == 503
        assert response.json() == {"status": "error", "error": "SERVER_IS_SHUTTING_DOWN"}

    await handle.die()
    await lifecycle.coordinator.wait_for_completion()


@pytest.mark.asyncio
async def test_status_snapshot(client, lifecycle):
    lifecycle.get_beacon_tracker().create_beacon({"job": "report"})

    response = await client.get("/status")

    assert response.status_code == 200
    assert response.json() == {
        "ready": False,
        "shutting_down": False,
        "phase": "IDLE",
        "beacons": 1,
        "beacon_contexts": [{"job": "report"}],
    }


@pytest.mark.asyncio
async def test_no_lifecycle_attached():
    app = create_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"detail": "Lifecycle server not initialized."}


def test_docs_disabled_by_default():
    app = create_app(LifecycleServer())
    assert app.docs_url is None
    assert app.openapi_url is None
