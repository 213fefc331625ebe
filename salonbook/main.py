"""
FastAPI application for the appointment dashboard and public booking pages

Reminder scans run either in-process (REMINDER_LOOP_ENABLED) or on Celery beat
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from salonbook.config.settings import get_settings
from salonbook.core.middleware import correlation_id_middleware, request_logging_middleware
from salonbook.core.monitoring import health_router
from salonbook.api.v1.router import api_v1_router
from salonbook.services.reminder.reminder_loop import ReminderLoop
from salonbook.services.reminder.reminder_service import ReminderDispatcher
from salonbook.utils.my_logging import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    print("🚀 Salonbook API starting up...")
    print(f"📅 Dashboard API available at /api/v1/dashboard/")
    print(f"🌐 Public booking API available at /api/v1/public/")
    print(f"❤️  Health check at /health")

    reminder_loop = None
    if settings.REMINDER_LOOP_ENABLED:
        reminder_loop = ReminderLoop(ReminderDispatcher())
        reminder_loop.start()
    app.state.reminder_loop = reminder_loop

    if settings.DEBUG:
        routes_list = sorted(
            (method, route.path, route.name)
            for route in app.routes if isinstance(route, APIRoute)
            for method in route.methods
        )
        print("\n📋 REGISTERED ROUTES:")
        for method, path, name in routes_list:
            print(f"  {method:8} {path:50} ({name})")
        print(f"✅ Total routes registered: {len(routes_list)}\n")

    yield

    # Shutdown
    if reminder_loop is not None:
        await reminder_loop.stop()
    print("🛑 Salonbook API shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="Salonbook API",
        description="Appointment booking, staff calendars and SMS reminders",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Last registered runs outermost: the access log sees the correlation ID
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": "Salonbook API",
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "salonbook.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
