"""
Increase Demo: FastAPI application.

This is the entry point for the application.
All routers are registered here; the frontend goes last
because its catch-all route would shadow the others.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from increase_demo.config import get_settings
from increase_demo.clients.increase import IncreaseAPIError
from increase_demo.schemas.api_log import VendorCallResponse
from increase_demo.api.health import router as health_router
from increase_demo.api.sessions import router as sessions_router
from increase_demo.api.api_log import router as api_log_router
from increase_demo.api.bill_payments import router as bill_payments_router
from increase_demo.api.banking import router as banking_router
from increase_demo.api.proxy import router as proxy_router
from increase_demo.api.frontend import register_frontend
from increase_demo.utils.logging import configure_logging, get_logger

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bill Pay and Banking demos against the Increase sandbox",
    debug=settings.DEBUG,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log the rejected request before returning the usual 422."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(IncreaseAPIError)
async def increase_api_exception_handler(request: Request, exc: IncreaseAPIError):
    """
    A sandbox call failed.

    Reported as a bad gateway; the sandbox's own status is
    passed along for the UI to show. A setup that failed before
    it had a session also returns the calls it made.
    """
    logger.error(
        f"Increase API error on {request.method} {request.url.path}: "
        f"{exc.status_code} {exc.message}"
    )
    content = {"detail": exc.message, "vendor_status": exc.status_code}
    if exc.requests:
        content["requests"] = [
            VendorCallResponse.model_validate(record).model_dump(mode="json")
            for record in exc.requests
        ]
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=content)


# Register routers
app.include_router(health_router)
app.include_router(sessions_router)
app.include_router(api_log_router)
app.include_router(bill_payments_router)
app.include_router(banking_router)
app.include_router(proxy_router)
register_frontend(app, settings.STATIC_DIR)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "increase_demo.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
