"""Main FastAPI application entry point"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from marine_workorders.api.board import router as board_router
from marine_workorders.api.dashboard import router as dashboard_router
from marine_workorders.api.errors import register_exception_handlers
from marine_workorders.api.health import router as health_router
from marine_workorders.api.photos import router as photos_router
from marine_workorders.api.references import clients_router, equipment_router, vessels_router
from marine_workorders.api.websocket_routes import router as websocket_router
from marine_workorders.api.work_orders import router as work_orders_router
from marine_workorders.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    container = getattr(app.state, "container", None)
    if container is not None:
        await container.close()
        logger.info("Realtime store closed")


app = FastAPI(
    title="Marine Work Orders API",
    description="Work order lifecycle for marine service shops: status transitions, history, photos and board",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Actor-Id"],
    max_age=3600,
)

register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(work_orders_router)
app.include_router(photos_router)
app.include_router(clients_router)
app.include_router(vessels_router)
app.include_router(equipment_router)
app.include_router(board_router)
app.include_router(dashboard_router)
app.include_router(websocket_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Marine Work Orders API",
        "version": "1.0.0",
        "status": "running",
    }
