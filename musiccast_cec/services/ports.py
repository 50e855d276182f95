"""
Collaborator interfaces the bridge core depends on.

ZoneControlPort is satisfied by MusicCastClient, BusPort by CecManager. Tests
use small recording fakes instead.
"""
from typing import Callable, Optional, Protocol, Sequence

from musiccast_cec.models.avr import ZoneStatus
from musiccast_cec.services.types import CecCommand, PowerState


class ZoneControlPort(Protocol):
    """AVR main zone. Setters raise AvrException on failure."""

    def set_power(self, power: PowerState) -> None: ...

    def set_input(self, input_name: str) -> None: ...

    def set_volume(self, volume: int) -> None: ...

    def volume_up(self) -> None: ...

    def volume_down(self) -> None: ...

    def get_status(self) -> Optional[ZoneStatus]:
        """Fresh status, or None when it could not be retrieved."""
        ...


CommandHandler = Callable[[CecCommand], None]


class BusPort(Protocol):
    """CEC transport."""

    def on_command_received(self, handler: CommandHandler) -> None: ...

    def transmit(self, destination: int, opcode: int, payload: Sequence[int] = ()) -> bool: ...
