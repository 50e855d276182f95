import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from musiccast_cec.core.config import settings
from musiccast_cec.services.ports import CommandHandler
from musiccast_cec.services.types import CecCommand, CecOpcode, LogicalAddress

log = logging.getLogger("musiccast_cec.cec")

# ---- libCEC import (fail fast if wrong module is installed) ----
try:
    import cec as libcec  # official SWIG binding from python3-cec
except Exception as e:
    raise ImportError(
        "libCEC Python binding not available. Install OS package 'python3-cec' "
        "and ensure your venv is created with --system-site-packages."
    ) from e

_missing = [n for n in ("libcec_configuration", "ICECAdapter", "CECDEVICE_TV") if not hasattr(libcec, n)]
if _missing:
    raise ImportError(
        f"'cec' module is not libCEC (missing: {', '.join(_missing)}). "
        "Avoid 'pip install cec'; use the OS package 'python3-cec'."
    )

# ---- helpers / mappings ----
_DEVTYPE_MAP = {
    "playback": getattr(libcec, "CEC_DEVICE_TYPE_PLAYBACK_DEVICE", 4),
    "record":   getattr(libcec, "CEC_DEVICE_TYPE_RECORDING_DEVICE", 1),
    "tuner":    getattr(libcec, "CEC_DEVICE_TYPE_TUNER", 3),
    "audio":    getattr(libcec, "CEC_DEVICE_TYPE_AUDIO_SYSTEM", 5),
    "tv":       getattr(libcec, "CEC_DEVICE_TYPE_TV", 0),
}

_LEVEL_MAP = {
    "ERROR":   getattr(libcec, "CEC_LOG_ERROR",   1),
    "WARNING": getattr(libcec, "CEC_LOG_WARNING", 2),
    "NOTICE":  getattr(libcec, "CEC_LOG_NOTICE",  3),
    "TRAFFIC": getattr(libcec, "CEC_LOG_TRAFFIC", 4),
    "DEBUG":   getattr(libcec, "CEC_LOG_DEBUG",   5),
}

# command callback hands us cec-client traffic lines, e.g. ">> 05:44:41"
_FRAME_RE = re.compile(
    r'^\s*(?:>>|<<)?\s*'
    r'([0-9A-Fa-f]{2})'            # header byte (initiator/destination)
    r':([0-9A-Fa-f]{2})'           # opcode
    r'((?::[0-9A-Fa-f]{2})*)\s*$'  # optional parameter bytes
)

# Opcodes that drive PowerStateMachine; handled one at a time, in arrival order
_SERIAL_OPCODES = frozenset({CecOpcode.SYSTEM_AUDIO_MODE_REQUEST, CecOpcode.STANDBY})

def parse_command(line: str) -> Optional[CecCommand]:
    """
    Parse a libCEC command string into a CecCommand.
    Returns None for anything that is not a frame with an opcode (e.g. polls "05").
    """
    m = _FRAME_RE.match(line or "")
    if not m:
        return None
    header = int(m.group(1), 16)
    params = tuple(int(b, 16) for b in m.group(3).split(":") if b)
    return CecCommand(
        initiator=header >> 4,
        destination=header & 0xF,
        opcode=int(m.group(2), 16),
        parameters=params,
    )

def format_command(source: int, destination: int, opcode: int, payload: Sequence[int] = ()) -> str:
    """cec-client style frame string, e.g. '50:7A:32'."""
    parts = [f"{source & 0xF:X}{destination & 0xF:X}", f"{opcode & 0xFF:02X}"]
    parts.extend(f"{b & 0xFF:02X}" for b in payload)
    return ":".join(parts)


class CecManager:
    """
    libCEC manager acting as the audio system on the bus:
      - explicit port (settings.CEC_PORT) or first detected adapter
      - single advertised device type (settings.CEC_DEVICE_TYPE)
      - persistent open handle with a gentle reconnect loop
      - received commands parsed and handed to a worker pool, one task per command;
        power-affecting opcodes go through a single worker so they keep their order

    Public API:
      start(), stop(), is_connected(), on_command_received(), transmit()
    """

    def __init__(self, device_name: str = settings.CEC_DEVICE_NAME,
                 port: Optional[str] = settings.CEC_PORT,
                 workers: int = settings.BRIDGE_WORKERS):
        self._name = device_name[:12]
        self._port = port
        self._devtype = _DEVTYPE_MAP.get(settings.CEC_DEVICE_TYPE, _DEVTYPE_MAP["audio"])
        self._log_threshold = _LEVEL_MAP.get(settings.CEC_LOG_LEVEL, _LEVEL_MAP["NOTICE"])

        # libCEC configuration
        self._cfg = libcec.libcec_configuration()
        self._cfg.strDeviceName = self._name
        self._cfg.bActivateSource = 0
        if hasattr(libcec, "LIBCEC_VERSION_CURRENT"):
            self._cfg.clientVersion = libcec.LIBCEC_VERSION_CURRENT
        try:
            self._cfg.deviceTypes.Clear()
        except Exception:
            pass
        self._cfg.deviceTypes.Add(self._devtype)

        self._cfg.SetLogCallback(self._on_log)
        self._cfg.SetCommandCallback(self._on_command)

        self._adapter = libcec.ICECAdapter.Create(self._cfg)

        # state
        self._opened = False
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._workers = workers
        self._pool: Optional[ThreadPoolExecutor] = None
        self._power_pool: Optional[ThreadPoolExecutor] = None
        self._handler: Optional[CommandHandler] = None

    # ---- callbacks ----
    def _on_log(self, level, ts, message):
        """
        Map libCEC logging to Python logging with *equality*, not >=.
        Gate by a threshold like pyCecClient does (“if level > log_level: return”).
        """
        if int(level) > int(self._log_threshold):
            return 0

        if level == libcec.CEC_LOG_ERROR:
            log.error("[libcec] %s", message)
        elif level == libcec.CEC_LOG_WARNING:
            log.warning("[libcec] %s", message)
        elif level == libcec.CEC_LOG_NOTICE:
            log.info("[libcec] %s", message)
        else:
            log.debug("[libcec:%s] %s", level, message)
        return 0

    def _on_command(self, cmd: str) -> int:
        """
        Runs on libCEC's thread. Parse the command string and queue it; handling may sleep
        (power-on settle delay) and must not hold up the next callback.
        Don't raise; never break libCEC internals.
        """
        try:
            command = parse_command(cmd)
            if command is None:
                log.debug("CEC RECV unparsed %r", cmd)
                return 1
            log.debug("CEC RECV %X->%X op=0x%02X %s", command.initiator, command.destination,
                      command.opcode, bytes(command.parameters).hex(":"))
            handler = self._handler
            pool = self._power_pool if command.opcode in _SERIAL_OPCODES else self._pool
            if handler is None or pool is None:
                return 1
            pool.submit(self._run_handler, handler, command)
        except Exception:
            log.exception("Exception in CEC command callback")
        return 1

    @staticmethod
    def _run_handler(handler: CommandHandler, command: CecCommand):
        try:
            handler(command)
        except Exception:
            log.exception("Unhandled error while handling opcode 0x%02X", command.opcode)

    # ---- lifecycle ----
    def _open(self) -> bool:
        port = self._port
        if not port:
            adapters = self._adapter.DetectAdapters()
            if not adapters:
                log.warning("No CEC adapters found")
                return False
            port = adapters[0].strComName
            log.info("Opening %s path %s", port, getattr(adapters[0], "strComPath", "?"))
        return bool(self._adapter.Open(port))

    def start(self):
        with self._lock:
            if self._opened:
                return
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="cec-cmd")
            if self._power_pool is None:
                self._power_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cec-power")
            opened = False
            try:
                opened = self._open()
            except Exception:
                log.exception("CEC Open(%s) failed", self._port or "auto")
                opened = False
            self._opened = opened
            log.info("CEC open port=%s devtype=%s -> %s",
                     self._port or "auto", settings.CEC_DEVICE_TYPE, self._opened)
            # background reconnect
            self._stop.clear()
            self._thread = threading.Thread(target=self._worker, name="cec-keepalive", daemon=True)
            self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1.5)
        with self._lock:
            try:
                self._adapter.Close()
            except Exception:
                log.debug("CEC Close failed", exc_info=True)
            self._opened = False
            # an in-flight power transition may be sleeping; don't wait for it
            for pool in (self._pool, self._power_pool):
                if pool is not None:
                    pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
            self._power_pool = None
        log.info("CEC stopped")

    def _worker(self):
        backoff = 1.0
        while not self._stop.is_set():
            if not self._opened:
                # gentle reconnect loop
                try:
                    ok = self._open()
                    self._opened = ok
                    if ok:
                        log.info("CEC reconnected on %s", self._port or "auto")
                        backoff = 1.0
                    else:
                        time.sleep(backoff)
                        backoff = min(backoff * 1.5, 10.0)
                        continue
                except Exception:
                    log.debug("CEC reopen failed", exc_info=True)
                    time.sleep(backoff)
                    backoff = min(backoff * 1.5, 10.0)
                    continue
            self._stop.wait(5.0)

    # ---- BusPort ----
    def is_connected(self) -> bool:
        with self._lock:
            return self._opened

    def on_command_received(self, handler: CommandHandler) -> None:
        self._handler = handler

    def transmit(self, destination: int, opcode: int, payload: Sequence[int] = ()) -> bool:
        frame = format_command(LogicalAddress.AUDIOSYSTEM, destination, opcode, payload)
        if not self.is_connected():
            log.warning("CEC not connected, dropping %s", frame)
            return False
        try:
            cmd = self._adapter.CommandFromString(frame)
            ok = bool(self._adapter.Transmit(cmd))
        except Exception:
            log.exception("CEC Transmit(%s) raised", frame)
            return False
        log.debug("CEC SEND %s -> %s", frame, ok)
        return ok
