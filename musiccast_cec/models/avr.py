from pydantic import BaseModel, Field
from typing import Literal

class ZoneStatus(BaseModel):
    """Snapshot of main/getStatus. Extra keys from the AVR are ignored."""
    power: str
    sleep: int = 0
    volume: int = Field(..., ge=0)
    max_volume: int = Field(..., gt=0)
    mute: bool = False
    input: str

class AvrVolumeRequest(BaseModel):
    direction: Literal["up", "down"]
