from __future__ import annotations

import pytest

from fakes import FakePahoFactory
from ledpanel.config import PanelConfig


@pytest.fixture
def paho_factory() -> FakePahoFactory:
    return FakePahoFactory()


@pytest.fixture
def config() -> PanelConfig:
    return PanelConfig(api_base_url="http://backend.test/api", device_id="esp32-01")
