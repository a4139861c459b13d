from dotenv import load_dotenv
load_dotenv()
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from app.core.config import settings
from app.core.exceptions import (
    ChangeRequestNotFoundError,
    ChangeRequestValidationError,
)
from app.core.rate_limit import limiter
from app.api import router as api_router
from app import __version__

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(
    title="ITIL Change Request Management",
    version=__version__
)

# Add rate limiter to app state
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please wait a moment before trying again."}
    )


@app.exception_handler(ChangeRequestNotFoundError)
async def change_request_not_found_handler(request: Request, exc: ChangeRequestNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ChangeRequestValidationError)
async def change_request_validation_handler(request: Request, exc: ChangeRequestValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Tables are managed by Alembic (alembic upgrade head)

app.include_router(api_router, prefix="/api")


@app.get("/")
def root():
    return {
        "message": "ITIL change request backend running",
        "version": __version__
    }


@app.get("/health")
def healthcheck():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn

    logging.getLogger(__name__).info(
        "ITIL Change Request Management server listening at port: %s", settings.SERVER_PORT
    )
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.SERVER_PORT)
