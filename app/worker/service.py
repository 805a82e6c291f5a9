"""Worker service running the notification consumer in a background thread."""

import threading
from typing import Optional

from app.logging import get_logger
from app.messaging.consumer import NotificationConsumer

logger = get_logger(__name__, component="worker")


class WorkerService:
    """
    Runs a NotificationConsumer on a dedicated thread.

    The main thread stays free to handle signals; it requests a stop through
    ``shutdown()`` and observes the result through ``wait()`` and
    ``fatal_error``.
    """

    def __init__(
        self,
        consumer: NotificationConsumer,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the worker service.

        Args:
            consumer: Consumer to run
            shutdown_event: Event used to request a stop (created if None)
        """
        self.consumer = consumer
        self.shutdown_event = shutdown_event or threading.Event()
        self.fatal_error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start consuming in the background."""
        if self.is_running():
            return

        self._thread = threading.Thread(
            target=self._run,
            name="notification-consumer",
            daemon=True,
        )
        self._thread.start()

        logger.info(
            f"Worker started on queue '{self.consumer.queue_name}'",
            extra={"event": "worker.started", "queue": self.consumer.queue_name},
        )

    def _run(self) -> None:
        try:
            self.consumer.run(self.shutdown_event)
        except Exception as e:
            self.fatal_error = e
            logger.critical(
                f"Worker terminated: {e}",
                exc_info=True,
                extra={"event": "worker.failed", "error_type": type(e).__name__},
            )
        finally:
            # Wake anyone blocked on the event, whatever ended the run
            self.shutdown_event.set()

    def shutdown(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Request a graceful stop.

        Args:
            wait: If True, block until the consumer thread has exited
            timeout: Upper bound in seconds for the wait
        """
        logger.info(
            "Shutting down worker",
            extra={"event": "worker.stopping", "wait": wait},
        )
        self.shutdown_event.set()

        if wait and self._thread is not None:
            self._thread.join(timeout)

        logger.info("Worker shutdown requested", extra={"event": "worker.stop_requested"})

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the consumer thread exits.

        Returns:
            True if the thread has exited (or was never started)
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
