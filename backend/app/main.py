import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.core.config import get_settings
from backend.core.exceptions import register_exception_handlers

# ========== POS Integration ==========
from backend.modules.pos.routes.pos_routes import router as toast_router
from backend.modules.pos.tasks.toast_sync_tasks import (
    start_toast_menu_sync_scheduler,
    stop_toast_menu_sync_scheduler,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Merxus - Toast POS Gateway",
    description="""
    Connects restaurant tenants to the Toast point-of-sale API.

    ## Features

    * **Connection** - Client-credentials authentication with Toast per tenant
    * **Menu Sync** - Hourly and on-demand import of the Toast menu
    * **Order Push** - Push AI phone orders into Toast

    All endpoints act on the tenant named by the `X-Tenant-ID` header.
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(toast_router)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup"""
    await start_toast_menu_sync_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown"""
    await stop_toast_menu_sync_scheduler()


@app.get("/")
def read_root():
    return {"message": "Merxus Toast gateway is running"}
