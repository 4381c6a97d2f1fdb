from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import status
import logging

# Import database components
from app.database.database import engine, Base
from app.core.exceptions import LedgerError

# Import routers
from app.modules.customers.router import router as customers_router
from app.modules.products.router import product_router
from app.modules.invoices.router import invoices_router
from app.modules.credits.router import credits_router
from app.modules.ledger.router import ledger_router

# Import models for table creation
import app.modules.customers.models
import app.modules.products.models
import app.modules.invoices.models
import app.modules.credits.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Invoice Ledger API",
    description="Facturación y saldos de clientes con FastAPI y SQLAlchemy (SQLite o PostgreSQL)",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({
            "data": exc.details,
            "message": exc.message,
            "status_code": exc.status_code
        })
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", [])), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "data": errors,
            "message": "Datos inválidos",
            "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY
        })
    )


# Include routers
app.include_router(customers_router)
app.include_router(product_router)
app.include_router(invoices_router)
app.include_router(credits_router)
app.include_router(ledger_router)

# Create database tables (only for development)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)


@app.get("/")
async def read_root():
    return {
        "message": "Invoice Ledger API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "backend": engine.dialect.name
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Invoice Ledger API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Database backend: {engine.dialect.name}")
    logger.info(f"Strict void order: {settings.STRICT_VOID_ORDER}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Invoice Ledger API shutting down...")
    engine.dispose()
