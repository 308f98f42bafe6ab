"""FastAPI app serving the web control page and the sync hub on one port."""
import logging
import os
from importlib import resources
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from ..models import ControlPlaneEndpoint
from .hub import SyncHub

logger = logging.getLogger(__name__)

WEBSOCKET_URL_PLACEHOLDER = "__WEBSOCKET_URL__"
PATH_TOKEN_PLACEHOLDER = "__WEB_CONTROL_CODE__"
IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
IMMUTABLE_SUFFIXES = (".js", ".css")


def setup_logging():
    """Configure logging for the application."""
    log_level = os.getenv('FIDEOCTL_LOG_LEVEL', 'INFO').upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )

    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.error').setLevel(logging.INFO)

    logging.getLogger('fideoctl').setLevel(getattr(logging, log_level, logging.INFO))


def default_dist_dir() -> Path:
    """Web bundle shipped inside the package."""
    return Path(str(resources.files("fideoctl") / "resources" / "dist"))


def render_entry_page(dist_dir: Path, endpoint: ControlPlaneEndpoint) -> str:
    """Read index.html and point it at this control plane.

    Raises:
        OSError: If the page cannot be read
    """
    html = (dist_dir / "index.html").read_text(encoding="utf-8")
    return (html
            .replace(WEBSOCKET_URL_PLACEHOLDER, f'"{endpoint.ws_url}"', 1)
            .replace(PATH_TOKEN_PLACEHOLDER, endpoint.path_token))


class ImmutableStaticFiles(StaticFiles):
    """Static files with long-lived caching for hashed scripts and stylesheets."""

    def file_response(self, full_path, stat_result, scope, status_code=200):
        response = super().file_response(full_path, stat_result, scope, status_code)
        if str(full_path).endswith(IMMUTABLE_SUFFIXES):
            response.headers["Cache-Control"] = IMMUTABLE_CACHE_CONTROL
        return response


def create_app(endpoint: ControlPlaneEndpoint, hub: SyncHub,
               dist_dir: Optional[Union[str, Path]] = None,
               compress: bool = True) -> FastAPI:
    """Build the control plane app for one running endpoint.

    Args:
        endpoint: Port, LAN address and path token the page is templated with
        hub: Hub handling WebSocket upgrades on any path
        dist_dir: Web bundle directory; defaults to the packaged one
        compress: Gzip HTTP responses

    Returns:
        FastAPI application
    """
    dist_dir = Path(dist_dir) if dist_dir else default_dist_dir()
    token = endpoint.path_token

    app = FastAPI(title="fideoctl control plane", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.endpoint = endpoint
    app.state.hub = hub

    if compress:
        app.add_middleware(GZipMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_errors(request: Request, exc: StarletteHTTPException):
        detail = "Not Found" if exc.status_code == 404 else str(exc.detail)
        return PlainTextResponse(detail, status_code=exc.status_code)

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        """Liveness probe."""
        return "OK"

    def entry_page():
        """Templated web control page."""
        try:
            return HTMLResponse(render_entry_page(dist_dir, endpoint))
        except OSError as e:
            logger.error(f"Failed to read entry page from {dist_dir}: {e}")
            return PlainTextResponse("Internal Server Error", status_code=500)

    app.add_api_route(f"/{token}", entry_page, methods=["GET"], response_class=HTMLResponse)

    @app.websocket("/{path:path}")
    async def websocket_endpoint(websocket: WebSocket, path: str):
        await hub.serve(websocket)

    app.mount(f"/{token}", ImmutableStaticFiles(directory=dist_dir, check_dir=False), name="dist")

    return app
