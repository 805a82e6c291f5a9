"""Background execution of the notification consumer."""

from .service import WorkerService

__all__ = [
    "WorkerService",
]
