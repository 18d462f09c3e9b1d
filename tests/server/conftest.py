from __future__ import annotations

from collections.abc import Iterator

import pytest
from starlette.testclient import TestClient

from ovpnctl.runtime import AppContext
from ovpnctl.server import create_app
from tests.helpers import memory_config


@pytest.fixture
def app_ctx() -> AppContext:
    return AppContext(memory_config())


@pytest.fixture
def client(app_ctx: AppContext) -> Iterator[TestClient]:
    app = create_app(app_ctx, manage_lifecycle=True, access_log=False)
    with TestClient(app) as test_client:
        yield test_client
