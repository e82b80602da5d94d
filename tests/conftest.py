"""
Shared fixtures: zero-latency client, facades, virtual-time scheduler.
"""

import pytest

from backend import ApiFacades, ClientConfig, LatencyConfig, RequestClient
from backend.seed import default_dataset
from backend.storage import InMemoryStorageBackend
from frontend.app import create_app
from frontend.persistence import InMemoryKeyValueStorage
from frontend.scheduling import ManualScheduler


def _captcha_code(captcha):
    """Codes are rendered into the image URL, the way the mock backend draws them."""
    return captcha.image.rsplit("text=", 1)[1]


@pytest.fixture
def fast_config():
    return ClientConfig(latency=LatencyConfig.none())


@pytest.fixture
def storage_backend():
    return InMemoryStorageBackend(default_dataset())


@pytest.fixture
def client(storage_backend, fast_config):
    return RequestClient(storage=storage_backend, config=fast_config)


@pytest.fixture
def api(client):
    return ApiFacades.from_client(client)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def kv():
    return InMemoryKeyValueStorage()


@pytest.fixture
def app(kv, fast_config, scheduler):
    return create_app(storage=kv, client_config=fast_config, scheduler=scheduler)


@pytest.fixture
def solve_captcha():
    return _captcha_code
