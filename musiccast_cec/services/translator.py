import logging

from musiccast_cec.exceptions.avr import AvrException
from musiccast_cec.services.ports import BusPort, ZoneControlPort
from musiccast_cec.services.power import PowerStateMachine
from musiccast_cec.services.types import CecCommand, CecOpcode, LogicalAddress, UserControlCode

log = logging.getLogger("musiccast_cec.translator")


def encode_audio_status(volume: int, max_volume: int, mute: bool) -> int:
    """
    REPORT_AUDIO_STATUS operand: volume scaled to 0..100 in the low 7 bits,
    0xF0 OR'd in when muted.
    """
    scaled = (100 * volume // max_volume) & 0x7F
    return (0xF0 if mute else 0x00) | scaled


class CommandTranslator:
    """Maps received CEC commands to AVR calls and CEC replies."""

    def __init__(self, power: PowerStateMachine, zone: ZoneControlPort, bus: BusPort):
        self._power = power
        self._zone = zone
        self._bus = bus
        self._handlers = {
            CecOpcode.SYSTEM_AUDIO_MODE_REQUEST: self._system_audio_mode_request,
            CecOpcode.USER_CONTROL_PRESSED: self._user_control_pressed,
            CecOpcode.STANDBY: self._standby,
            CecOpcode.GIVE_AUDIO_STATUS: self._give_audio_status,
        }

    def handle(self, command: CecCommand) -> None:
        handler = self._handlers.get(command.opcode)
        if handler is None:
            log.debug("Ignoring opcode 0x%02X from %X", command.opcode, command.initiator)
            return
        handler(command)

    def _system_audio_mode_request(self, command: CecCommand):
        # Physical address of the requesting source; not used for routing
        if command.size >= 2:
            phys_addr = (command.param(1) << 8) + command.param(0)
            log.info("System audio mode request for %x.%x.%x.%x",
                     (phys_addr >> 12) & 0xF, (phys_addr >> 8) & 0xF,
                     (phys_addr >> 4) & 0xF, phys_addr & 0xF)
        requested_on = command.size != 0
        log.info("System audio mode %s requested", "on" if requested_on else "off")
        self._power.update(requested_on)
        self._reply(CecOpcode.SET_SYSTEM_AUDIO_MODE, [1 if requested_on else 0])

    def _user_control_pressed(self, command: CecCommand):
        if command.size == 0:
            return
        keycode = command.param(0)
        try:
            if keycode == UserControlCode.VOLUME_DOWN:
                self._zone.volume_down()
            elif keycode == UserControlCode.VOLUME_UP:
                self._zone.volume_up()
        except AvrException as e:
            log.error("MusicCast volume step failed [%s]: %s", e.error_code, e.message)

    def _standby(self, command: CecCommand):
        log.info("Standby from %X", command.initiator)
        self._power.update(False)

    def _give_audio_status(self, command: CecCommand):
        log.info("Requested to report audio status")
        status = self._zone.get_status()
        if status is None:
            log.error("Error while retrieving MusicCast status, not reporting audio status")
            return
        operand = encode_audio_status(status.volume, status.max_volume, status.mute)
        self._reply(CecOpcode.REPORT_AUDIO_STATUS, [operand])

    def _reply(self, opcode: CecOpcode, payload):
        if not self._bus.transmit(LogicalAddress.TV, opcode, payload):
            log.error("Failed to transmit %s to TV", opcode.name)
