import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redirector_app.config import settings
from redirector_app.database.connection import engine, Base
from redirector_app.api.v1 import admin, redirect
from redirector_app.dependencies import get_geo_resolver

# Import models to ensure they're registered with Base
from redirector_app.models import ShortLink, Partner, ClickEvent, BypassEvent

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release the geo provider connection pool if it was ever opened
    if get_geo_resolver.cache_info().currsize:
        get_geo_resolver().close()


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title=settings.app_name,
    version=settings.app_version,
    description="Short-link redirector with partner referrer gating and click analytics",
    debug=settings.debug
)

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


######## Include routers (the catch-all /{code} route goes last)
app.include_router(admin.router, prefix="/api")
app.include_router(redirect.router)
