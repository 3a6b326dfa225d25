# packcontrol/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from packcontrol import __version__
from packcontrol.config import settings
from packcontrol.database import init_db
from packcontrol.db_guards import register_ledger_guards
from packcontrol.exceptions import PackControlError

# Router imports
from packcontrol.routes.auth import router as auth_router
from packcontrol.routes.admin import router as admin_router
from packcontrol.routes.logs import router as logs_router
from packcontrol.routes.categories import router as categories_router
from packcontrol.routes.suppliers import router as suppliers_router
from packcontrol.routes.products import router as products_router
from packcontrol.routes.stock import router as stock_router
from packcontrol.routes.stats import router as stats_router
from packcontrol.routes.reports import router as reports_router

# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger("packcontrol")

# Ledger rows are append-only for every session in this process
register_ledger_guards()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(
    title="PackControl API",
    description="Stock control: catalog, stock movement ledger, dashboard and reports",
    version=__version__,
    lifespan=lifespan,
)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8080",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )
    return response


# ERROR MAPPING

@app.exception_handler(PackControlError)
async def packcontrol_error_handler(request: Request, exc: PackControlError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(categories_router)
app.include_router(suppliers_router)
app.include_router(products_router)
app.include_router(stock_router)
app.include_router(stats_router)
app.include_router(reports_router)


@app.get("/")
def read_root():
    return {"message": "PackControl API is running"}


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": __version__}
