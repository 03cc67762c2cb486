"""Pending persistence queues."""

from modelcache.queue.pending import PendingQueue, Task

__all__ = [
    "PendingQueue",
    "Task",
]
