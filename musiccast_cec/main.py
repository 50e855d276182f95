from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from musiccast_cec.core.config import settings
from musiccast_cec.core.logging import setup_logging
from musiccast_cec.dependencies import cleanup_services, start_bridge, check_cec_health, check_avr_health
from musiccast_cec.exceptions.avr import AvrException, avr_exception_handler, general_exception_handler
from musiccast_cec.routers import hdmi, avr

setup_logging(settings.LOG_LEVEL)
log = logging.getLogger("musiccast_cec.main")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Opens the CEC adapter and wires it to the bridge; the HTTP API only
    observes and pokes the same singletons.
    """
    log.info("Application startup - starting CEC bridge")
    await run_in_threadpool(start_bridge)
    yield
    log.info("Application shutdown - cleaning up services")
    await run_in_threadpool(cleanup_services)
    log.info("App services stopped")

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_exception_handler(AvrException, avr_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(hdmi.router, prefix="/hdmi")
app.include_router(avr.router, prefix="/avr")

@app.get("/health")
def health_check():
    """Health check for the CEC adapter and the AVR"""
    cec_health = check_cec_health()
    avr_health = check_avr_health()

    overall_status = "healthy" if (cec_health["status"] == "healthy" and avr_health["status"] == "healthy") else "unhealthy"

    return {
        "status": overall_status,
        "services": {
            "cec": cec_health,
            "avr": avr_health
        },
        "version": "0.1.0"
    }
