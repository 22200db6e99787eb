"""
FastAPI application exposing the generation pipeline.

One POST endpoint takes {task, url?, content?, tweetCount?, imagePrompt?,
generateImage?} and returns the orchestrator's response envelope unchanged.
Other methods on that path get 405 with an Allow header. Every framework
error is rendered as {"error": ...} so clients see one error shape.

Run with `blog-thread serve`, or `uvicorn --factory blog_thread.api:create_app`.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings, load_config, resolve_settings
from .logging import get_logger
from .pipeline import Pipeline

GENERATE_PATH = "/api/generate"

logger = get_logger("api")


def create_app(settings: Optional[Settings] = None, pipeline: Optional[Pipeline] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Args:
        settings: Resolved settings (resolved from config + env if None)
        pipeline: Pre-built pipeline, mainly for tests

    Returns:
        Configured FastAPI app
    """
    if pipeline is None:
        pipeline = Pipeline(settings or resolve_settings(load_config()))

    app = FastAPI(
        title="Blog to Thread API",
        description="Convert long-form content into a numbered social-media thread and illustration",
        version=__version__,
    )
    app.state.pipeline = pipeline

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            message = f"Method {request.method} Not Allowed"
        else:
            message = str(exc.detail)
        return JSONResponse({"error": message}, status_code=exc.status_code, headers=exc.headers)

    @app.get("/health")
    async def health():
        """Liveness check; reports which credentials are configured, never their values."""
        current = app.state.pipeline.settings
        return {
            "status": "ok",
            "version": __version__,
            "textModelConfigured": current.has_text_credentials,
            "imageBackendConfigured": current.has_image_credentials,
            "imageBackend": current.image_backend,
        }

    @app.post(GENERATE_PATH)
    async def generate(request: Request):
        """Run one pipeline task."""
        try:
            data = await request.json()
        except ValueError:
            return JSONResponse(
                {"error": "Request body must be valid JSON.", "stage": "request"},
                status_code=400,
            )

        # Upstream clients block on requests; keep them off the event loop
        response = await run_in_threadpool(app.state.pipeline.handle, data)
        return JSONResponse(response.body, status_code=response.status)

    return app
