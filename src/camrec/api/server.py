"""HTTP surface: query API, recordings files and the viewer UI."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from camrec.api.errors import register_exception_handlers
from camrec.api.routes import register_routes

if TYPE_CHECKING:
    from camrec.app import Application

logger = logging.getLogger(__name__)

_READY_POLL_S = 0.01


def create_contract_app() -> FastAPI:
    """Routes and error handling only; no recorder attached."""
    app = FastAPI(title="camrec", version="1.0.0")
    register_exception_handlers(app)
    register_routes(app)
    return app


def create_app(recorder: Application) -> FastAPI:
    app = create_contract_app()
    app.state.camrec = recorder

    server_config = recorder.config.server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.cors_origins,
        allow_credentials="*" not in server_config.cors_origins,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )

    # Mount order matters: "/" must come last or it shadows /recordings.
    if server_config.serve_recordings:
        _mount_directory(app, "/recordings", recorder.layout.root, name="recordings")
    if server_config.serve_ui:
        ui_dir = Path(recorder.config.ui_dir).expanduser().resolve()
        if (ui_dir / "index.html").is_file():
            _mount_directory(app, "/", ui_dir, name="ui", html=True)
        else:
            logger.warning("Viewer UI not found at %s; serving API only", ui_dir)
    return app


def _mount_directory(
    app: FastAPI,
    path: str,
    directory: Path,
    *,
    name: str,
    html: bool = False,
) -> None:
    if not directory.is_dir():
        logger.warning("Not serving %s: %s is not a directory", path, directory)
        return
    app.mount(path, StaticFiles(directory=directory, html=html), name=name)
    logger.debug("Serving %s from %s", path, directory)


class APIServer:
    """Runs uvicorn as a task on the recorder's event loop."""

    def __init__(
        self,
        app: FastAPI,
        host: str,
        port: int,
        *,
        startup_timeout_s: float = 5.0,
    ) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._startup_timeout_s = startup_timeout_s
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start serving and return once uvicorn reports it is listening.

        Raises:
            TimeoutError: If the server is not ready within the startup timeout.
            RuntimeError: If the server exits before becoming ready.
        """
        if self._task is not None:
            return

        server = uvicorn.Server(
            uvicorn.Config(
                self._app,
                host=self._host,
                port=self._port,
                loop="asyncio",
                log_level="info",
                access_log=False,
            )
        )
        # Signals belong to Application, which stops the server itself.
        server.install_signal_handlers = False  # type: ignore[attr-defined]
        task = asyncio.create_task(server.serve(), name="camrec-api")

        try:
            await self._wait_ready(server, task)
        except BaseException:
            server.should_exit = True
            await asyncio.gather(task, return_exceptions=True)
            raise

        self._server = server
        self._task = task
        logger.info("Server running on http://%s:%d", self._host, self._port)

    async def _wait_ready(self, server: uvicorn.Server, task: asyncio.Task[None]) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._startup_timeout_s
        while not server.started:
            if task.done():
                task.result()
                raise RuntimeError("API server exited before startup completed")
            if loop.time() >= deadline:
                raise TimeoutError(
                    f"Timed out waiting for API server startup on {self._host}:{self._port}"
                )
            await asyncio.sleep(_READY_POLL_S)

    async def stop(self) -> None:
        server, task = self._server, self._task
        self._server = None
        self._task = None
        if server is None or task is None:
            return
        server.should_exit = True
        try:
            await task
        except Exception as exc:
            logger.error("API server stopped with error: %s", exc, exc_info=True)
        logger.info("API server stopped")
