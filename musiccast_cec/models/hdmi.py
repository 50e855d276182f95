from pydantic import BaseModel, Field
from typing import Literal

PowerState = Literal["on", "standby"]

class HdmiStatus(BaseModel):
    adapter_connected: bool
    bridge_power: PowerState = Field(..., description="Power state of the AVR as the bridge last set it")

class HdmiPowerRequest(BaseModel):
    state: PowerState
