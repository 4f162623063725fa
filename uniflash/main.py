import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from uniflash.api.routes import api_router
from uniflash.config.settings import get_settings
from uniflash.db.base import init_db
from uniflash.services.errors import (
    CardNotFoundError,
    IntervalPolicyError,
    RatingInProgressError,
    ReviewSessionNotFoundError,
    SessionStateError,
    StoreUnavailableError,
    UniflashError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    IntervalPolicyError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    CardNotFoundError: status.HTTP_404_NOT_FOUND,
    ReviewSessionNotFoundError: status.HTTP_404_NOT_FOUND,
    RatingInProgressError: status.HTTP_409_CONFLICT,
    SessionStateError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    load_dotenv()
    init_db()
    yield


app = FastAPI(title=get_settings().app_name, lifespan=lifespan)


@app.exception_handler(UniflashError)
async def handle_uniflash_error(request: Request, exc: UniflashError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health")
def health_check() -> dict[str, str]:
    """Basic health endpoint."""
    return {"status": "ok"}


app.include_router(api_router)


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
