import logging
import threading
import time
from typing import Callable

from musiccast_cec.exceptions.avr import AvrException
from musiccast_cec.services.ports import ZoneControlPort
from musiccast_cec.services.types import DeviceConfig

log = logging.getLogger("musiccast_cec.power")


class PowerStateMachine:
    """
    Owns the on/off state of the AVR as seen from the CEC bus.

    update() is the only writer. Calls are serialized, so a standby arriving while a
    power-on sequence is sleeping waits for that sequence to finish and then runs.
    AVR failures are logged and the sequence carries on; the state always ends up
    at the requested value.
    """

    def __init__(self, zone: ZoneControlPort, device: DeviceConfig,
                 settle_delay: float = 3.0,
                 sleep: Callable[[float], None] = time.sleep):
        self._zone = zone
        self._device = device
        self._settle_delay = settle_delay
        self._sleep = sleep
        self._lock = threading.Lock()
        self._is_on = False

    @property
    def is_on(self) -> bool:
        return self._is_on

    def update(self, requested_on: bool) -> None:
        with self._lock:
            if self._is_on == requested_on:
                log.debug("Power already %s, nothing to do", "on" if requested_on else "off")
                return
            if requested_on:
                self._power_on()
            else:
                self._power_off()
            self._is_on = requested_on
            log.info("Bridge power state -> %s", "on" if requested_on else "off")

    def _power_on(self):
        self._step("set_power(on)", self._zone.set_power, "on")
        self._step("set_input", self._zone.set_input, self._device.input_name)
        # AVR applies its automatic volume after the input switch; let it finish first
        if self._settle_delay > 0:
            self._sleep(self._settle_delay)
        self._step("set_volume", self._zone.set_volume, self._device.target_volume)

    def _power_off(self):
        status = self._zone.get_status()
        if status is not None and status.input != self._device.input_name:
            log.info("Not sending standby to MusicCast: active input is %r, not %r",
                     status.input, self._device.input_name)
            return
        if status is None:
            log.warning("MusicCast status unknown, sending standby anyway")
        self._step("set_power(standby)", self._zone.set_power, "standby")

    @staticmethod
    def _step(name: str, fn, *args) -> None:
        try:
            fn(*args)
        except AvrException as e:
            log.error("MusicCast %s failed [%s]: %s", name, e.error_code, e.message)
