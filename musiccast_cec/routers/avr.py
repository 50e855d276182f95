import logging
from typing import Annotated
from fastapi import APIRouter, Depends
from musiccast_cec.exceptions.avr import AvrUnavailableException
from musiccast_cec.models.avr import ZoneStatus, AvrVolumeRequest
from musiccast_cec.services.musiccast import MusicCastClient
from musiccast_cec.dependencies import get_musiccast

router = APIRouter(tags=["avr"])
log = logging.getLogger("musiccast_cec.router.avr")

MusicCastDep = Annotated[MusicCastClient, Depends(get_musiccast)]

@router.get("/status", response_model=ZoneStatus)
def avr_status(musiccast: MusicCastDep):
    """Fresh main zone status from the AVR"""
    zone = musiccast.get_status()
    if zone is None:
        raise AvrUnavailableException("MusicCast status unavailable", {"address": musiccast.address})
    return zone

@router.post("/volume")
def avr_volume(body: AvrVolumeRequest, musiccast: MusicCastDep):
    """Single volume step, same as a remote volume key on the TV"""
    log.info("avr/volume: %s", body.direction)
    if body.direction == "up":
        musiccast.volume_up()
    else:
        musiccast.volume_down()
    return {"ok": True, "direction": body.direction}
