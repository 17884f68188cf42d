"""Campus Marketplace API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MarketplaceError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import marketplace.infrastructure.database as database
from marketplace import __version__
from marketplace.api.error_handlers import register_error_handlers
from marketplace.api.routes import auth, cart, checkout, health, items, messages
from marketplace.config import get_settings
from marketplace.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Campus Marketplace API started")
    yield
    logger.info("Campus Marketplace API shutting down")
    await manager.dispose()


app = FastAPI(
    title="Campus Marketplace API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(items.router)
app.include_router(messages.router)
app.include_router(messages.uploads_router)
app.include_router(cart.cart_router)
app.include_router(cart.wishlist_router)
app.include_router(checkout.router)

register_error_handlers(app)


def run():
    """Run the server (uvicorn)."""
    uvicorn.run("marketplace.main:app", host="0.0.0.0", port=8000)
