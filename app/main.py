"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.api import (
    availability,
    bottles,
    categories,
    cocktails,
    ingredients,
    shortages,
    units,
)

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Carta Cocktail",
    description="Bar inventory, cocktail recipes and availability",
    version="0.1.0",
)

# CORS configuration from environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(units.router, prefix="/api/v1")
app.include_router(categories.router, prefix="/api/v1")
app.include_router(categories.types_router, prefix="/api/v1")
app.include_router(bottles.router, prefix="/api/v1")
app.include_router(ingredients.router, prefix="/api/v1")
app.include_router(cocktails.router, prefix="/api/v1")
app.include_router(availability.router, prefix="/api/v1")
app.include_router(shortages.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Carta Cocktail API", "docs": "/docs"}
