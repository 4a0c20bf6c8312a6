import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from linkstats_app.config import settings
from linkstats_app.database.connection import init_db
from linkstats_app.exceptions import ShortenerError
from linkstats_app.api.v1 import urls, redirect

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

if settings.record_store_backend == "sqlalchemy":
    init_db()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="URL shortener with click analytics, built with FastAPI",
    debug=settings.debug
)


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError):
    """Render service errors as {"error": {"kind", "message"}} with their status code"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
# Analytics routes are registered before the catch-all redirect route
app.include_router(urls.router, prefix="/api")
app.include_router(redirect.router, prefix="/api")
