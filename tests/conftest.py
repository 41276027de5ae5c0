import pytest

from jotdown.runtime import telemetry


@pytest.fixture(autouse=True)
def quiet_telemetry() -> None:
    telemetry.configure(preset="quiet")
