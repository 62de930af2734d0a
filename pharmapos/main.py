# Main application file

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded

from pharmapos.core.config import settings
from pharmapos.core.exceptions import POSError, StorageError
from pharmapos.core.rate_limiter import limiter
from pharmapos.database import close_db, init_db
from pharmapos.routers import customers, products, sales


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("pharmapos")


# LIFECYCLE

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("POS server started")
    yield
    close_db()
    logger.info("POS server stopped")


# APP INIT

app = FastAPI(
    title="PharmaPOS API",
    description="Point-of-sale and inventory backend for pharmacy and retail counters",
    version="1.0.0",
    lifespan=lifespan,
)


# CORS

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "RateLimitExceeded",
            "message": f"Rate limit exceeded: {exc.detail}",
        },
    )


# ERROR HANDLING

@app.exception_handler(POSError)
async def pos_error_handler(request: Request, exc: POSError):
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} storage failure: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_dict()),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and query strings are rejected as a whole
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "InvalidRequest",
            "message": "Request validation failed",
            "details": errors,
        },
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


# ROUTERS

app.include_router(products.router)
app.include_router(sales.router)
app.include_router(customers.router)


# ROOT

@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/api")


@app.get("/api")
def api_index():
    return {
        "success": True,
        "message": "POS Inventory System API",
        "version": app.version,
        "endpoints": {
            "products": "/api/products",
            "sales": "/api/sales",
            "customers": "/api/customers",
            "health": "/api/health",
        },
    }


@app.get("/api/health")
def health():
    logger.info("Health check endpoint called")
    return {
        "success": True,
        "message": "POS Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
