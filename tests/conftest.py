from typing import List, Optional, Sequence, Tuple

import pytest

from musiccast_cec.exceptions.avr import AvrUnavailableException
from musiccast_cec.models.avr import ZoneStatus
from musiccast_cec.services.power import PowerStateMachine
from musiccast_cec.services.translator import CommandTranslator
from musiccast_cec.services.types import DeviceConfig

INPUT = "hdmi1"
VOLUME = 42


class FakeZone:
    """Records every call in order; get_status returns whatever `status` holds."""

    def __init__(self, status: Optional[ZoneStatus] = None, fail: Sequence[str] = ()):
        self.calls: List[Tuple] = []
        self.status = status
        self.fail = set(fail)
        self.address = "avr.test"

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise AvrUnavailableException(f"{name} failed")

    def set_power(self, power):
        self._record("set_power", power)

    def set_input(self, input_name):
        self._record("set_input", input_name)

    def set_volume(self, volume):
        self._record("set_volume", volume)

    def volume_up(self):
        self._record("volume_up")

    def volume_down(self):
        self._record("volume_down")

    def get_status(self):
        self.calls.append(("get_status",))
        return self.status


class FakeBus:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent: List[Tuple[int, int, Tuple[int, ...]]] = []
        self.handler = None

    def on_command_received(self, handler):
        self.handler = handler

    def transmit(self, destination, opcode, payload=()):
        self.sent.append((int(destination), int(opcode), tuple(payload)))
        return self.ok


def zone_status(input: str = INPUT, volume: int = 50, max_volume: int = 100, mute: bool = False) -> ZoneStatus:
    return ZoneStatus(power="on", volume=volume, max_volume=max_volume, mute=mute, input=input)


@pytest.fixture
def device():
    return DeviceConfig(input_name=INPUT, target_volume=VOLUME, address="avr.test")


@pytest.fixture
def zone():
    return FakeZone(status=zone_status())


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def power(zone, device, sleeps):
    return PowerStateMachine(zone, device, settle_delay=3.0, sleep=sleeps.append)


@pytest.fixture
def translator(power, zone, bus):
    return CommandTranslator(power, zone, bus)
