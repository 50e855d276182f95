from typing import Literal, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "MusicCast CEC Bridge"
    LOG_LEVEL: str = "INFO"

    # HTTP API bind (python -m musiccast_cec)
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080

    # ---- MusicCast (Yamaha Extended Control, main zone only) ----
    MUSICCAST_ADDRESS: str = "musiccast.local"
    # Input selected when the TV turns system audio on
    MUSICCAST_INPUT: str = "tv"
    # Absolute volume applied after power on
    MUSICCAST_VOLUME: int = 90
    MUSICCAST_TIMEOUT: float = 3.0

    # ---- Bridge ----
    # The AVR applies its own volume leveling after an input switch; wait before setting volume.
    BRIDGE_SETTLE_DELAY_SEC: float = 3.0
    # Worker threads for volume keys and audio status; power opcodes use one extra worker, in order
    BRIDGE_WORKERS: int = 4

    # ---- CEC (libCEC only) ----
    # Explicit adapter port. None = use the first detected adapter.
    CEC_PORT: Optional[str] = None
    # Device identity advertised on the CEC bus. The bridge acts as the amplifier.
    CEC_DEVICE_TYPE: Literal["playback", "record", "tuner", "audio", "tv"] = "audio"
    CEC_DEVICE_NAME: str = "MusicCast"

    # Logging from libCEC → Python logger
    # ERROR | WARNING | NOTICE | TRAFFIC | DEBUG  (see pyCecClient)
    CEC_LOG_LEVEL: Literal["ERROR", "WARNING", "NOTICE", "TRAFFIC", "DEBUG"] = "NOTICE"


    class Config:
        env_file = ".env"

settings = Settings()
