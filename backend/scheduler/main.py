import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db
from .redis_client import redis_client
from .routers import appointments, clients, therapists
from .services.scheduling.errors import SchedulingError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(title="Therapy Center Scheduling API", lifespan=lifespan)

app.include_router(therapists.router)
app.include_router(clients.router)
app.include_router(appointments.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.get("/health")
def health():
    return {
        "status": "ok",
        "redis": redis_client.ping() if redis_client is not None else None,
    }
