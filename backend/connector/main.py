from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import ConnectorConfig
from .models import Envelope
from .routers import health, task


async def http_error_envelope(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (401, 404, 405, ...) in the same envelope as task errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=Envelope.error(str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


def create_app(config: ConnectorConfig) -> FastAPI:
    app = FastAPI(title="Digistorm Connector", version=__version__, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config

    app.add_exception_handler(StarletteHTTPException, http_error_envelope)
    app.include_router(health.router)
    app.include_router(task.router)
    return app
