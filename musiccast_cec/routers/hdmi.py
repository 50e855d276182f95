import logging
from typing import Annotated
from fastapi import APIRouter, Depends
from musiccast_cec.models.hdmi import HdmiStatus, HdmiPowerRequest
from musiccast_cec.services.power import PowerStateMachine
from musiccast_cec.dependencies import get_power_machine, check_cec_health

router = APIRouter(tags=["hdmi"])
log = logging.getLogger("musiccast_cec.router.hdmi")

# Type alias for power state dependency
PowerDep = Annotated[PowerStateMachine, Depends(get_power_machine)]

@router.get("/status", response_model=HdmiStatus)
def hdmi_status(power: PowerDep):
    connected = check_cec_health()["connected"]
    bridge_power = "on" if power.is_on else "standby"
    log.debug("hdmi/status -> connected=%s power=%s", connected, bridge_power)
    return HdmiStatus(adapter_connected=connected, bridge_power=bridge_power)

@router.post("/power")
def hdmi_power(body: HdmiPowerRequest, power: PowerDep):
    """Apply the same transition a System Audio Mode request / Standby from the TV would."""
    log.info("hdmi/power: %s", body)
    power.update(body.state == "on")
    return {"ok": True, "state": body.state}
