from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .logging_config import configure_logging
from .routers import events as events_router
from .service import EventService, build_event_service
from .settings import Settings, get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "events",
        "description": "Calendar events: create, replace, delete, toggle and day/upcoming/month queries.",
    },
    {"name": "store", "description": "Diagnostics for the shared event store."},
]


# PUBLIC_INTERFACE
def create_app(service: Optional[EventService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI app around one EventService.

    When no service is given, one is built from settings and loaded from
    storage. The service lives on app.state for the lifetime of the app.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Event Store",
        description="Durable calendar event store shared between the app and its widgets.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.event_service = service or build_event_service(settings)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and how events were loaded.
        """
        report = app.state.event_service.last_load_report
        return {
            "message": "Healthy",
            "backend": settings.persistence_backend,
            "load_path": report.path.value if report else None,
        }

    app.include_router(events_router.router)
    app.include_router(events_router.store_router)
    return app


app = create_app()
