"""
HTTPS listener for admission calls.

The listener runs as its own asyncio task. Its failure (bind error, TLS
handshake setup) surfaces as the task's exception so the entry point can
observe it instead of scraping logs.
"""

import asyncio
import logging
import ssl

from aiohttp.web import Application, AppRunner, TCPSite

from ..errors import TLSCredentialError
from .review import AdmissionReviewEngine

logger = logging.getLogger(__name__)


class WebhookServer:
    """TLS server routing both admission paths to the review engine."""

    def __init__(
        self,
        engine: AdmissionReviewEngine,
        host: str = "0.0.0.0",
        port: int = 443,
        ssl_context: ssl.SSLContext | None = None,
    ):
        """
        Initialize webhook server.

        Args:
            engine: Review engine handling every admission call
            host: Host interface to bind to
            port: Port to serve on
            ssl_context: Server TLS context holding the leaf credential
        """
        self.engine = engine
        self.host = host
        self.port = port
        self.ssl_context = ssl_context
        self.app = Application()
        for path in engine.routes:
            self.app.router.add_post(path, engine.handle)

        self.runner: AppRunner | None = None
        self._task: asyncio.Task[None] | None = None
        self._started = asyncio.Event()
        self._stop_requested = asyncio.Event()

    @staticmethod
    def load_ssl_context(cert_file: str, key_file: str) -> ssl.SSLContext:
        """
        Build a server TLS context from PEM files.

        Raises:
            TLSCredentialError: If the key pair cannot be loaded
        """
        try:
            context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
            context.load_cert_chain(certfile=cert_file, keyfile=key_file)
        except (OSError, ssl.SSLError) as e:
            raise TLSCredentialError(cert_file, key_file, cause=e) from e
        return context

    @property
    def serving(self) -> bool:
        return self._started.is_set() and not self._stop_requested.is_set()

    @property
    def addresses(self) -> list:
        """Socket addresses the listener is bound to."""
        return self.runner.addresses if self.runner else []

    def start(self) -> asyncio.Task[None]:
        """
        Spawn the listener task without waiting for it.

        Returns:
            The listener task; it finishes after ``stop`` or on failure
        """
        if self._task is None:
            self._task = asyncio.create_task(self._serve(), name="webhook-listener")
        return self._task

    async def wait_started(self) -> None:
        """
        Wait until the listener accepts connections.

        Raises:
            Exception: Whatever made the listener task fail
        """
        task = self.start()
        started = asyncio.create_task(self._started.wait())
        await asyncio.wait({task, started}, return_when=asyncio.FIRST_COMPLETED)
        if not started.done():
            started.cancel()
        if task.done():
            task.result()

    async def _serve(self) -> None:
        self.runner = AppRunner(self.app)
        await self.runner.setup()
        try:
            site = TCPSite(self.runner, self.host, self.port, ssl_context=self.ssl_context)
            await site.start()
            self._started.set()
            logger.info(f"Webhook server started on {self.host}:{self.port}")
            await self._stop_requested.wait()
        except Exception as e:
            logger.error(f"Failed to listen and serve webhook server: {e}")
            raise
        finally:
            # stops accepting and waits for in-flight requests
            await self.runner.cleanup()
            logger.info("Webhook server stopped")

    async def stop(self) -> None:
        """Stop accepting connections and drain in-flight requests."""
        self._stop_requested.set()
        if self._task is not None and not self._task.done():
            await self._task
