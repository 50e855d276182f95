"""
Dependency injection for the FastAPI application.
Owns the bridge singletons: MusicCast client, power state machine, translator, CEC manager.
"""
import logging
from typing import TYPE_CHECKING, Optional, Dict, Any
from fastapi import HTTPException, status
from musiccast_cec.core.config import settings
from musiccast_cec.services.musiccast import MusicCastClient
from musiccast_cec.services.power import PowerStateMachine
from musiccast_cec.services.translator import CommandTranslator
from musiccast_cec.services.types import DeviceConfig

if TYPE_CHECKING:
    from musiccast_cec.services.cec_manager import CecManager

log = logging.getLogger("musiccast_cec.dependencies")

# Global instances for singleton services
_musiccast: Optional[MusicCastClient] = None
_power: Optional[PowerStateMachine] = None
_translator: Optional[CommandTranslator] = None
_cec_manager: Optional["CecManager"] = None


class CECServiceError(HTTPException):
    """Custom exception for CEC service errors"""
    def __init__(self, detail: str, status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE):
        super().__init__(status_code=status_code, detail=detail)


def device_config() -> DeviceConfig:
    return DeviceConfig(
        input_name=settings.MUSICCAST_INPUT,
        target_volume=settings.MUSICCAST_VOLUME,
        address=settings.MUSICCAST_ADDRESS,
    )


def get_musiccast() -> MusicCastClient:
    global _musiccast
    if _musiccast is None:
        log.info("Initializing MusicCastClient for %s", settings.MUSICCAST_ADDRESS)
        _musiccast = MusicCastClient(settings.MUSICCAST_ADDRESS, settings.MUSICCAST_TIMEOUT)
    return _musiccast


def get_power_machine() -> PowerStateMachine:
    global _power
    if _power is None:
        device = device_config()
        log.info("DeviceData: input=%s, address=%s, volume=%d",
                 device.input_name, device.address, device.target_volume)
        _power = PowerStateMachine(get_musiccast(), device, settings.BRIDGE_SETTLE_DELAY_SEC)
    return _power


def get_cec_manager() -> "CecManager":
    """
    Dependency to get the CecManager. libCEC is imported here, not at module load,
    so the rest of the app stays importable on machines without python3-cec.
    """
    if _cec_manager is None:
        raise CECServiceError("CEC bridge not started")
    if not _cec_manager.is_connected():
        raise CECServiceError("CEC service not available")
    return _cec_manager


def start_bridge() -> None:
    """Create the CEC manager, wire it to the translator and open the adapter."""
    global _cec_manager, _translator
    if _cec_manager is not None:
        return
    from musiccast_cec.services.cec_manager import CecManager

    log.info("Initializing CecManager")
    cec = CecManager(settings.CEC_DEVICE_NAME, settings.CEC_PORT, settings.BRIDGE_WORKERS)
    _translator = CommandTranslator(get_power_machine(), get_musiccast(), cec)
    cec.on_command_received(_translator.handle)
    _cec_manager = cec
    cec.start()


def cleanup_services():
    """Called during application shutdown."""
    global _musiccast, _power, _translator, _cec_manager

    if _cec_manager:
        log.info("Shutting down CecManager")
        try:
            _cec_manager.stop()
        except Exception as e:
            log.error(f"Error shutting down CEC manager: {e}")

    if _musiccast:
        _musiccast.close()

    _musiccast = None
    _power = None
    _translator = None
    _cec_manager = None
    log.info("Service cleanup completed")


# Health check functions
def check_cec_health() -> Dict[str, Any]:
    """Check CEC service health"""
    try:
        cec = get_cec_manager()
        return {
            "status": "healthy",
            "connected": cec.is_connected(),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "connected": False,
        }


def check_avr_health() -> Dict[str, Any]:
    """Check the AVR answers main/getStatus"""
    zone = get_musiccast().get_status()
    if zone is None:
        return {"status": "unhealthy", "address": settings.MUSICCAST_ADDRESS, "power": None, "input": None}
    return {"status": "healthy", "address": settings.MUSICCAST_ADDRESS, "power": zone.power, "input": zone.input}
