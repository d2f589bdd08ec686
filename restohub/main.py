from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from restohub.core.config import get_settings
from restohub.core.exceptions import DomainError
from restohub.routers.categories import router as categories_router
from restohub.routers.health import router as health_router
from restohub.routers.items import router as items_router
from restohub.routers.menus import router as menus_router
from restohub.routers.restaurants import router as restaurants_router
from restohub.routers.reviews import router as reviews_router
from restohub.routers.stats import router as stats_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Restaurant catalogue API - Restaurants, items, menus, categories, reviews and daily statistics.",
    version="0.1.0",
)


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Map service-layer errors to their HTTP status with a structured body."""
    logger.warning(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(restaurants_router, prefix="/api")
app.include_router(categories_router, prefix="/api")
app.include_router(items_router, prefix="/api")
app.include_router(menus_router, prefix="/api")
app.include_router(reviews_router, prefix="/api")
app.include_router(stats_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
