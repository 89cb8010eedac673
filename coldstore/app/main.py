import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coldstore.app.api.v1.router import router as v1_router
from coldstore.app.core.config import settings
from coldstore.app.core.logging import configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger("coldstore.app")

app = FastAPI(title="COLDSTORE WMS", version="0.1.0")
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error": str(exc)},
    )
