import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from api.applications import router as applications_router
from api.inspections import maintenance_router
from api.inspections import router as inspections_router
from api.leases import router as leases_router
from api.payments import router as payments_router
from api.properties import router as properties_router
from api.vendors import router as vendors_router
from api.webhooks import router as webhooks_router
from services.errors import LifecycleError
from utils.log import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Rental applications, leases and payments lifecycle API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    if exc.http_status >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "internal server error", "details": {}}},
    )


app.include_router(properties_router)
app.include_router(applications_router)
app.include_router(leases_router)
app.include_router(payments_router)
app.include_router(webhooks_router)
app.include_router(inspections_router)
app.include_router(maintenance_router)
app.include_router(vendors_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
