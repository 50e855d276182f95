import logging
import os
import sys

def setup_logging(level: str | None = None) -> None:
    lvl_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, lvl_name, logging.INFO)

    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # keep uvicorn in sync
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(lvl)
    # per-request debug lines from httpx are noise unless we are debugging
    logging.getLogger("httpx").setLevel(max(lvl, logging.WARNING))
