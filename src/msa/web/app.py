"""FastAPI web application for the MSA dashboard.

This module builds the FastAPI application, loads the results table once
at startup and includes the API routes.  It also provides a convenience
function to launch the server via Uvicorn.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI
import uvicorn

from .routes import router
from .. import __version__
from ..config.settings import settings
from ..io.dataset import Dataset, load_dataset
from ..session.state import SessionStore
from ..utils.logging import get_logger

logger = get_logger(__name__)


def create_app(dataset: Optional[Dataset] = None, dataset_path: Optional[Path] = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    dataset: Dataset, optional
        Preloaded dataset.  When omitted the table at ``dataset_path``
        (default ``settings.dataset_path``) is loaded during startup; a
        missing or malformed file aborts startup.
    dataset_path: Path, optional
        Location of the results table.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "dataset", None) is None:
            path = dataset_path or settings.dataset_path
            app.state.dataset = load_dataset(path)
            app.state.sessions = SessionStore(app.state.dataset)
        yield

    app = FastAPI(
        title="MSA Dashboard",
        description="Forest plots and scatterplots of meta-analytic effect sizes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dataset = dataset
    if dataset is not None:
        app.state.sessions = SessionStore(dataset)
    app.include_router(router)

    @app.get("/")
    async def index() -> dict:
        """Service description and the available outputs."""
        return {
            "title": "MSA Dashboard",
            "version": __version__,
            "outputs": ["postPlot", "scatterPlot"],
        }

    return app


app = create_app()


def start_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Start the Uvicorn web server.

    Parameters
    ----------
    host: str
        Host to bind the server to. Defaults to ``127.0.0.1``.
    port: int
        Port to listen on. Defaults to 8000.
    reload: bool
        Whether to enable auto-reload. Useful during development.
    """
    logger.info(f"Starting web server on {host}:{port}")
    uvicorn.run(
        "msa.web.app:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    start_server(settings.host, settings.port)
