"""Service bootstrap for ``kubecascade serve``.

Startup order: config → logging → cluster APIs → lister/deleter → workflow → REST.
Shutdown runs the same chain backwards. Losing the cluster connection is
not fatal: the REST inspector then only analyzes snapshots sent by callers.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from kubecascade.config import load_config
from kubecascade.models.config import KubeCascadeConfig
from kubecascade.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog
    import uvicorn

    from kubecascade.collector import KubeApis, KubernetesResourceDeleter, KubernetesResourceLister
    from kubecascade.workflow import DeletionWorkflow

_CLOSE_TIMEOUT_SECONDS = 15


class _ComponentError(Exception):
    """A component the service cannot run without failed to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"{component} failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeCascadeApp:
    """Owns the cluster client, the deletion workflow and the REST server.

    ``stop()`` is idempotent and safe before ``start()``.
    """

    def __init__(self) -> None:
        self.config: KubeCascadeConfig | None = None
        self._log: structlog.stdlib.BoundLogger | None = None

        self._apis: KubeApis | None = None
        self._lister: KubernetesResourceLister | None = None
        self._deleter: KubernetesResourceDeleter | None = None
        self._workflow: DeletionWorkflow | None = None
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None

        self._running = False
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def live(self) -> bool:
        """True when deletions are analyzed against a connected cluster."""
        return self._workflow is not None

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Bring every component up. Raises _ComponentError on a fatal failure."""
        config = self.config = load_config()
        setup_logging(config.log.level)
        log = self._log = get_logger("app")
        log.info("service_starting", version=_version(), cluster_id=config.cluster_id)

        await self._connect_cluster(config, log)
        self._bind_workflow(config, log)
        self._serve_rest(config, log)

        self._running = True
        self._stopped.clear()
        log.info("service_started", port=config.api.port, live=self.live)

    async def _connect_cluster(self, config: KubeCascadeConfig, log: structlog.stdlib.BoundLogger) -> None:
        if not config.cluster.enabled:
            log.info("cluster_disabled", mode="snapshot_only")
            return
        from kubecascade.collector import connect

        try:
            self._apis = await connect()
        except Exception as exc:
            log.warning("cluster_connect_failed", mode="snapshot_only", error=str(exc))
            return
        log.info("cluster_connected")

    def _bind_workflow(self, config: KubeCascadeConfig, log: structlog.stdlib.BoundLogger) -> None:
        if self._apis is None:
            return
        from kubecascade.collector import KubernetesResourceDeleter, KubernetesResourceLister
        from kubecascade.workflow import DeletionWorkflow

        try:
            self._lister = KubernetesResourceLister(self._apis)
            self._deleter = KubernetesResourceDeleter(self._apis)
            self._workflow = DeletionWorkflow.from_config(self._lister, config)
        except Exception as exc:
            raise _ComponentError("workflow", exc) from exc
        log.info(
            "workflow_ready",
            max_depth=config.engine.cascade_max_depth,
            force_denied_kinds=sorted(config.policy.force_denied_kinds),
        )

    def _serve_rest(self, config: KubeCascadeConfig, log: structlog.stdlib.BoundLogger) -> None:
        import uvicorn

        from kubecascade.api import create_app

        try:
            server = uvicorn.Server(
                uvicorn.Config(
                    app=create_app(workflow=self._workflow, config=config),
                    host="0.0.0.0",
                    port=config.api.port,
                    log_config=None,
                    access_log=False,
                )
            )
            self._server_task = asyncio.create_task(server.serve(), name="rest-server")
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc
        self._server = server
        log.info("rest_listening", port=config.api.port)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the REST server, drop the workflow, then close the cluster client."""
        if self._log is None:
            self._stopped.set()
            return
        log = self._log
        log.info("service_stopping")
        self._running = False

        if self._server is not None:
            self._server.should_exit = True
        if self._server_task is not None:
            if not self._server_task.done():
                self._server_task.cancel()
            await asyncio.gather(self._server_task, return_exceptions=True)
        self._server = None
        self._server_task = None

        self._workflow = None
        self._deleter = None
        self._lister = None

        apis, self._apis = self._apis, None
        if apis is not None:
            try:
                await asyncio.wait_for(apis.close(), timeout=_CLOSE_TIMEOUT_SECONDS)
            except TimeoutError:
                log.warning("cluster_close_timed_out", timeout=_CLOSE_TIMEOUT_SECONDS)
            except Exception as exc:
                log.error("cluster_close_failed", error=str(exc))

        log.info("service_stopped")
        self._log = None
        self._stopped.set()


def _version() -> str:
    from kubecascade import __version__

    return __version__


async def main() -> None:
    """Run the service until SIGTERM or SIGINT."""
    app = KubeCascadeApp()
    loop = asyncio.get_running_loop()
    shutdown: asyncio.Task[None] | None = None

    def _request_shutdown() -> None:
        nonlocal shutdown
        if shutdown is None:
            shutdown = asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        await app.wait_stopped()
    except _ComponentError as exc:
        get_logger("app").critical("fatal_startup_error", component=exc.component, error=str(exc.cause))
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
