"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studio.core.config import get_settings
from studio.core.logging import setup_logging

# Setup logging
logger = setup_logging("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services at startup, clean up at shutdown."""
    settings = get_settings()
    try:
        from studio.services.filters import FilterEngine
        from studio.services.generation import GenerationClient, GenerationOrchestrator
        from studio.services.image_models import ImageModelService
        from studio.services.store import create_store
        from studio.services.templates import TemplateService

        store = create_store(settings.store_backend, settings.gcp_project_id)
        engine = FilterEngine(
            jpeg_quality=settings.jpeg_quality,
            vignette_model_ids=settings.vignette_model_ids,
            max_pixels=settings.max_pixels,
            fetch_timeout=settings.remote_fetch_timeout,
            allowed_hosts=settings.remote_image_hosts,
            max_fetch_bytes=settings.max_upload_bytes,
        )

        template_service = TemplateService(store)
        model_service = ImageModelService(store, engine)
        catalog_dir = Path(settings.catalog_path)
        model_service.seed(catalog_dir)
        template_service.seed(catalog_dir)

        app.state.template_service = template_service
        app.state.model_service = model_service
        app.state.orchestrator = GenerationOrchestrator(
            store,
            GenerationClient(settings.generation_webhook_url, timeout=settings.generation_timeout),
        )
        logger.info("Services initialized successfully")
    except Exception as exc:
        logger.error(
            "Service initialization failed, running in degraded mode",
            exc_info=True,
            extra={"service": "main", "error_type": type(exc).__name__},
        )
        # Continue without services; endpoints return 503 until fixed

    yield


# Create FastAPI app
app = FastAPI(
    title="Photo Style Studio",
    description="Photo filtering and template-driven image generation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.frontend_port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
from studio.api.generations import router as generations_router  # noqa: E402
from studio.api.models import router as models_router  # noqa: E402
from studio.api.templates import router as templates_router  # noqa: E402
from studio.api.uploads import router as uploads_router  # noqa: E402

app.include_router(templates_router)
app.include_router(models_router)
app.include_router(generations_router)
app.include_router(uploads_router)


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Always returns HTTP 200; check `services` for what initialized.
    """
    state = request.app.state
    services = {
        name: "ok" if getattr(state, attr, None) is not None else "unavailable"
        for name, attr in (
            ("templates", "template_service"),
            ("models", "model_service"),
            ("generation", "orchestrator"),
        )
    }

    logger.info("Health check requested")
    return {"status": "ok", "version": app.version, "services": services}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.backend_host, port=settings.backend_port)
