from client.api import ApiClient, ApiRequestError
from client.session import SessionProvider, SessionState, TokenStorage
from client.task_list import Debouncer, TaskListView

__all__ = [
    "ApiClient",
    "ApiRequestError",
    "Debouncer",
    "SessionProvider",
    "SessionState",
    "TaskListView",
    "TokenStorage",
]
