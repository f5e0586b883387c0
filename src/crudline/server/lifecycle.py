"""Start-once guard for the command server.

The hosting process calls ``start_server()`` once; repeated or
concurrent calls are no-ops. The listener runs on a daemon thread with
its own event loop for the rest of the process lifetime.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from crudline.config.settings import ServerConfig
from crudline.domain.models import ServerState
from crudline.server.listener import ListenerLoop
from crudline.server.protocol import RequestHandler

logger = logging.getLogger(__name__)

THREAD_NAME = "crudline-listener"


class ServerLifecycle:
    """Launches a single ListenerLoop at most once.

    The check-and-set of ``state.started`` happens under a lock, so
    concurrent ``start()`` calls launch exactly one listener.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        handler: RequestHandler | None = None,
        state: ServerState | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._state = state or ServerState()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.listener = ListenerLoop(config=config, handler=handler, logger=logger)

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state.started

    def start(self) -> bool:
        """Launch the listener thread unless already started.

        Returns True only for the call that launched it.
        """
        with self._lock:
            if self._state.started:
                self._logger.info("Server already started")
                return False
            self._state.started = True

            thread = threading.Thread(target=self._run, name=THREAD_NAME, daemon=True)
            try:
                thread.start()
            except RuntimeError as e:
                self._logger.error("Failed to create server thread: %s", e)
                self._state.started = False
                return False
            self._thread = thread
            self._logger.info("Server thread created")
            return True

    def _run(self) -> None:
        try:
            asyncio.run(self.listener.serve())
        except asyncio.CancelledError:
            self._logger.info("Listener cancelled")


_default_lifecycle: ServerLifecycle | None = None
_default_lock = threading.Lock()


def start_server(config: ServerConfig | None = None) -> bool:
    """Process-wide entry point: start the command server once.

    ``config`` is only honoured by the first call.
    """
    global _default_lifecycle
    with _default_lock:
        if _default_lifecycle is None:
            _default_lifecycle = ServerLifecycle(config=config)
        lifecycle = _default_lifecycle
    return lifecycle.start()


def get_default_lifecycle() -> ServerLifecycle | None:
    """The lifecycle behind ``start_server()``, if it was ever called."""
    return _default_lifecycle
