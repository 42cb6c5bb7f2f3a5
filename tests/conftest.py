from __future__ import annotations

from typing import Iterator

import pytest

from procchain.config import RunnerSettings, configure
from procchain.testing import CallLog


@pytest.fixture(autouse=True)
def default_settings() -> Iterator[None]:
    previous = configure(RunnerSettings())
    yield
    configure(previous)


@pytest.fixture()
def call_log() -> CallLog:
    return CallLog()
