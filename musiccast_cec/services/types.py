# helps local imports without coupling to models (avoids cycles)
from dataclasses import dataclass
from enum import IntEnum
from typing import Literal, Tuple

PowerState = Literal["on", "standby"]


class LogicalAddress(IntEnum):
    """CEC logical addresses used by the bridge"""
    TV = 0x0
    AUDIOSYSTEM = 0x5
    BROADCAST = 0xF


class CecOpcode(IntEnum):
    """CEC opcodes the bridge reacts to or sends"""
    STANDBY = 0x36
    USER_CONTROL_PRESSED = 0x44
    SYSTEM_AUDIO_MODE_REQUEST = 0x70
    GIVE_AUDIO_STATUS = 0x71
    SET_SYSTEM_AUDIO_MODE = 0x72
    REPORT_AUDIO_STATUS = 0x7A


class UserControlCode(IntEnum):
    """CEC user control codes"""
    VOLUME_UP = 0x41
    VOLUME_DOWN = 0x42
    MUTE = 0x43


@dataclass(frozen=True)
class CecCommand:
    """
    Immutable copy of a received CEC frame, detached from libCEC's SWIG objects
    so it can be handed to a worker thread.
    """
    initiator: int
    destination: int
    opcode: int
    parameters: Tuple[int, ...] = ()

    @property
    def size(self) -> int:
        return len(self.parameters)

    def param(self, index: int = 0, default: int = 0) -> int:
        if index < len(self.parameters):
            return self.parameters[index]
        return default


@dataclass(frozen=True)
class DeviceConfig:
    """What the bridge applies to the AVR when the TV hands over audio."""
    input_name: str
    target_volume: int = 90
    address: str = ""
