from fastapi import Request
from fastapi.responses import JSONResponse
import logging
import time
from typing import Optional, Dict, Any

log = logging.getLogger("musiccast_cec.exceptions.avr")

class AvrException(Exception):
    """Base AVR exception with enhanced error context"""
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        timestamp: Optional[float] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = timestamp or time.time()
        super().__init__(self.message)

class AvrUnavailableException(AvrException):
    """AVR could not be reached (connect error, timeout)"""
    def __init__(self, message: str = "AVR not reachable", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, 503, "AVR_UNAVAILABLE", context)

class AvrRequestException(AvrException):
    """AVR answered with an HTTP error status"""
    def __init__(self, message: str, http_status: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        ctx = {"http_status": http_status, **(context or {})} if http_status else (context or {})
        super().__init__(f"AVR request failed: {message}", 502, "AVR_REQUEST_FAILED", ctx)

class AvrResponseException(AvrException):
    """AVR answered but the payload was rejected (response_code != 0 or unparsable)"""
    def __init__(self, message: str, response_code: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        ctx = {"response_code": response_code, **(context or {})} if response_code is not None else (context or {})
        super().__init__(f"AVR response invalid: {message}", 502, "AVR_RESPONSE_INVALID", ctx)

# Exception handlers
async def avr_exception_handler(request: Request, exc: AvrException):
    """AVR exception handler returning the error envelope"""
    request_info = {
        "method": request.method,
        "url": str(request.url),
    }

    log.error(
        f"AVR exception [{exc.error_code}]: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "context": exc.context,
            "request": request_info,
            "timestamp": exc.timestamp
        }
    )

    error_response = {
        "error": {
            "code": exc.error_code,
            "type": exc.__class__.__name__,
            "message": exc.message,
            "timestamp": exc.timestamp
        },
        "status_code": exc.status_code
    }
    if exc.context:
        error_response["error"]["context"] = exc.context

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response
    )

async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler with context and logging"""
    request_info = {
        "method": request.method,
        "url": str(request.url),
    }

    log.error(
        f"Unexpected error: {str(exc)}",
        exc_info=True,
        extra={
            "error_type": exc.__class__.__name__,
            "request": request_info,
            "timestamp": time.time()
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "type": "InternalServerError",
                "message": "An unexpected error occurred",
                "timestamp": time.time()
            },
            "status_code": 500
        }
    )
