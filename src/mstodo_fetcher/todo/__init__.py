"""
To Do subsystem.

Components:
- models.py: configuration, credential, task and event data structures
- errors.py: error kinds raised by the client
- query.py: $filter / $orderby grammar and URL building
- client.py: per-account client with credential / list id / query caches
- coordinator.py: per-account polling loops and dispatch to the sink
"""

from .client import AccountClient
from .coordinator import ClientRegistry, FetchCoordinator, PollHandle
from .errors import AuthError, ConfigError, FetchError, ListLookupError, ListNotFoundError, TodoClientError
from .models import AccountConfiguration, FetchEvent, FetchEventKind, OrderBy, PlannedTasksConfig, TaskRecord

__all__ = [
    "AccountClient",
    "AccountConfiguration",
    "AuthError",
    "ClientRegistry",
    "ConfigError",
    "FetchCoordinator",
    "FetchError",
    "FetchEvent",
    "FetchEventKind",
    "ListLookupError",
    "ListNotFoundError",
    "OrderBy",
    "PlannedTasksConfig",
    "PollHandle",
    "TaskRecord",
    "TodoClientError",
]
