import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from musiccast_cec.core.config import settings
from musiccast_cec.exceptions.avr import (
    AvrException, AvrRequestException, AvrResponseException, AvrUnavailableException,
)
from musiccast_cec.models.avr import ZoneStatus
from musiccast_cec.services.types import PowerState

log = logging.getLogger("musiccast_cec.musiccast")


class MusicCastClient:
    """
    Blocking Yamaha Extended Control client for the main zone.

    Blocking on purpose: it is called from CEC worker threads, never from the event loop
    (FastAPI runs sync endpoints in its threadpool).
    """

    def __init__(self, address: str = settings.MUSICCAST_ADDRESS,
                 timeout: float = settings.MUSICCAST_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        self.address = address
        self.base_url = f"http://{address}/YamahaExtendedControl/v1/"
        self.http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self):
        self.http.close()
        log.info("MusicCast client closed")

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        log.debug("MusicCast GET %s %s", path, params or {})
        try:
            r = self.http.get(path, params=params)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            raise AvrRequestException(str(e), e.response.status_code, {"path": path}) from e
        except httpx.HTTPError as e:
            raise AvrUnavailableException(f"{self.address}: {e}", {"path": path}) from e
        except ValueError as e:
            raise AvrResponseException(f"body is not JSON ({e})", context={"path": path}) from e

        if not isinstance(data, dict):
            raise AvrResponseException("body is not an object", context={"path": path})
        code = data.get("response_code")
        if code != 0:
            raise AvrResponseException(f"{path} returned response_code={code}", code, {"path": path})
        return data

    # ---- ZoneControlPort ----
    def set_power(self, power: PowerState) -> None:
        log.info("Setting MusicCast power status to %s", power)
        self._get("main/setPower", {"power": power})

    def set_input(self, input_name: str) -> None:
        log.info("Setting MusicCast input to %s", input_name)
        self._get("main/setInput", {"input": input_name})

    def set_volume(self, volume: int) -> None:
        log.info("Setting MusicCast volume to %d", volume)
        self._get("main/setVolume", {"volume": int(volume)})

    def volume_up(self) -> None:
        self._get("main/setVolume", {"volume": "up"})

    def volume_down(self) -> None:
        self._get("main/setVolume", {"volume": "down"})

    def get_status(self) -> Optional[ZoneStatus]:
        """Return the main zone status, or None if it cannot be fetched or parsed."""
        try:
            data = self._get("main/getStatus")
            return ZoneStatus.model_validate(data)
        except AvrException as e:
            log.warning("MusicCast status unavailable: %s", e.message)
        except ValidationError as e:
            log.warning("MusicCast status malformed: %s", e)
        return None
