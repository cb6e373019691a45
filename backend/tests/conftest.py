"""pytest configuration for Canary Tracker tests."""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from canary.config import Settings
from canary.database import Database
from canary.main import create_app


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        mode="api",
        data_path=str(tmp_path),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        update_upload_dir=str(tmp_path / "canary-update"),
        update_script_path=str(tmp_path / "RaspberryCode.zip"),
        internal_api_url="http://internal.test",
    )


@pytest_asyncio.fixture()
async def database(settings):
    db = Database(settings.get_database_url())
    await db.init()
    yield db
    await db.close()


@pytest_asyncio.fixture()
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture()
def client(settings):
    """TestClient for the internal API, backed by a fresh SQLite file."""
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture()
def report_payload():
    """Build a performance submission body as a device would send it."""
    def build(mac_address, authenticator_key, timestamp="2024-05-01T12:00:00", url="https://example.com", **extra):
        payload = {
            "timestamp": timestamp,
            "mac_address": mac_address,
            "authenticator_key": authenticator_key,
            "website_performance": {
                "url": url,
                "http_status": 200,
                "load_time": 0.42,
                "content_length": 1256,
            },
            "network_performance": {
                "download_speed_mbps": 94.3,
                "upload_speed_mbps": 11.8,
                "ping_ms": 14.2,
            },
        }
        payload.update(extra)
        return payload
    return build
