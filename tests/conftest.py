import base64

import pytest
from fastapi.testclient import TestClient

from core.config import ServerConfig, get_server_config
from main import app
from services.limiting import limiter

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


@pytest.fixture
def config(tmp_path) -> ServerConfig:
    return ServerConfig.from_values(tmp_path / "data", codes="secret, other")


@pytest.fixture
def client(config):
    """TestClient bound to a tmp_path config; lifespan is not started."""
    limiter.reset()
    app.dependency_overrides[get_server_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()
