from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Import database components
from smartpoint.database.database import create_database

# Import middleware
from smartpoint.common.middleware import DeviceMiddleware, SecurityHeadersMiddleware

# Import routers
from smartpoint.modules.inventory.router import items_router
from smartpoint.modules.sales.router import sales_router
from smartpoint.modules.finance.router import finance_router
from smartpoint.modules.cashiers.router import cashiers_router

# Import models for table creation
import smartpoint.modules.auth.models
import smartpoint.modules.inventory.models
import smartpoint.modules.sales.models

from smartpoint.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="SmartPoint API",
    description="Point-of-sale backend: inventory, checkout and revenue reporting",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(DeviceMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(items_router)
app.include_router(sales_router)
app.include_router(finance_router)
app.include_router(cashiers_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"success": False, "message": exc.detail}
    code = getattr(exc, "code", None)
    if code:
        content["error"] = code
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid input")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "invalid_input", "message": message}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    message = "Internal server error"
    if not settings.is_production:
        message = f"{message}: {exc}"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": message}
    )


@app.get("/")
async def read_root():
    return {
        "message": "SmartPoint API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("SmartPoint API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if getattr(app.state, "database", None) is None:
        app.state.database = create_database(settings)

    # Create database tables (only for development - run `python migrate.py upgrade` elsewhere)
    if settings.ENVIRONMENT == "development":
        await app.state.database.create_all()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("SmartPoint API shutting down...")
    database = getattr(app.state, "database", None)
    if database is not None:
        await database.dispose()
