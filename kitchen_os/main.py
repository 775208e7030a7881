"""
Kitchen OS - Main Application Entry Point
KOT routing and kitchen display coordination for restaurant POS
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from kitchen_os.core.config import get_settings
from kitchen_os.core.events import event_bus
from kitchen_os.core.websocket_manager import manager, register_event_relays
from kitchen_os.api import (
    kds, order_items, orders, kots, handover, staff, websockets
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()

# Domain events reach terminals through the connection manager
register_event_relays(event_bus, manager)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Kitchen OS backend")
    # Tables are created by Alembic migrations, not auto-generated
    logger.info("Database managed by Alembic migrations")

    yield

    # Shutdown
    logger.info("Shutting down Kitchen OS backend")


# Create FastAPI application
app = FastAPI(
    title="Kitchen OS API",
    description="KOT routing and real-time kitchen display coordination",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include routers
app.include_router(kds.router, prefix="/kds", tags=["kds"])
app.include_router(order_items.router, prefix="/order-items", tags=["order-items"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(kots.router, prefix="/kots", tags=["kots"])
app.include_router(handover.router, prefix="/handover", tags=["handover"])
app.include_router(staff.router, prefix="/staff", tags=["staff"])
app.include_router(websockets.router, prefix="/ws", tags=["websockets"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "kitchen-os-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Kitchen OS API",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "kitchen_os.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
