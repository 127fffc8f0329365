"""
Storefront Admin API: main application

Serves the catalog (products, categories) and the admin product form,
which saves a product, reconciles its variants and uploads images per color.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime

from config import settings, check_connection, reset_connection
from exceptions import AppError

# stdlib logging carries the level; structlog renders JSON in production
logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def storage_status() -> dict:
    """Where product images go and what uploads are accepted."""
    return {
        "bucket": settings.storage_bucket,
        "folder": settings.storage_folder,
        "max_image_size_mb": settings.max_image_size_mb,
        "allowed_image_types": settings.allowed_image_types,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Log catalog size on startup; drop the cached Supabase client on shutdown.

    A failed catalog check is logged, not fatal: /health keeps reporting it.
    """
    logger.info(
        "storefront_api_starting",
        environment=settings.environment,
        debug=settings.debug,
        image_bucket=settings.storage_bucket
    )

    catalog = check_connection()
    if catalog["status"] == "healthy":
        logger.info(
            "catalog_reachable",
            products=catalog["products_count"],
            variants=catalog["variants_count"]
        )
    else:
        logger.error("catalog_unreachable", error=catalog.get("error"))

    yield

    reset_connection()
    logger.info("storefront_api_stopped")


app = FastAPI(
    title="Storefront Admin API",
    description="Catalog and admin management for products, variants and images",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Storefront and admin frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """
    Catalog tables and image storage settings.

    Degraded when products or product_variants cannot be counted.
    """
    catalog = check_connection()

    return {
        "status": "healthy" if catalog["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "database": catalog,
        "storage": storage_status(),
    }


@app.get("/")
async def root():
    """Entry points of the catalog and the admin product form."""
    return {
        "name": "Storefront Admin API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "products": "/api/products",
            "product_form": "/api/products/form",
            "categories": "/api/categories",
            "variants": "/api/products/{product_id}/variants",
            "variant_validation": "/api/variants/validate",
            "images": "/api/products/{product_id}/images",
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Catalog errors that escaped a route keep their own status and code."""
    logger.warning(
        "catalog_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else is a 500 in the same error envelope as AppError."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.utcnow().isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.variants import router as variants_router
from routes.images import router as images_router

app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
app.include_router(variants_router)  # /api/products/{id}/variants and /api/variants
app.include_router(images_router)  # /api/products/{id}/images and /api/images


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
