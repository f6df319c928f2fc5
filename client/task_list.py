"""State behind the task list screen: filters, sort, paging and search.

Filter and sort changes refetch immediately and go back to page 1. Search
text is debounced so a burst of keystrokes produces one request.
"""

import logging
import threading
from dataclasses import asdict, dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from client.api import ApiClient, ApiRequestError

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_SECONDS = 0.4


class Debouncer:
    """Run ``fn`` once, ``delay`` seconds after the last ``call()``."""

    def __init__(self, fn: Callable[[], None], delay: float = SEARCH_DEBOUNCE_SECONDS,
                 timer_factory: Callable[..., Any] = threading.Timer):
        self.fn = fn
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    def call(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = self._timer_factory(self.delay, partial(self._fire, self._generation))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A later call() or cancel() superseded this timer.
            if generation != self._generation:
                return
            self._timer = None
        self.fn()


@dataclass
class ListQuery:
    status: Optional[str] = None
    priority: Optional[str] = None
    search: str = ""
    page: int = 1
    limit: int = 10
    sortBy: str = "createdAt"
    order: str = "desc"


@dataclass
class Pagination:
    total: int = 0
    page: int = 1
    pages: int = 1
    limit: int = 10


@dataclass
class TaskListView:
    api: ApiClient
    query: ListQuery = field(default_factory=ListQuery)
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)
    stats: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    timer_factory: Callable[..., Any] = threading.Timer

    def __post_init__(self):
        self._search = Debouncer(self.refresh, self.debounce_seconds, self.timer_factory)

    # -- loading --

    def refresh(self) -> None:
        try:
            data = self.api.list_tasks(**asdict(self.query))
        except ApiRequestError as exc:
            logger.warning("Loading tasks failed: %s", exc.message)
            self.error = exc.message
            return
        self.error = None
        self.tasks = data["tasks"]
        self.pagination = Pagination(**data["pagination"])

    def load_stats(self) -> Optional[Dict[str, Any]]:
        try:
            self.stats = self.api.stats()
        except ApiRequestError as exc:
            logger.debug("Loading stats failed: %s", exc.message)
        return self.stats

    # -- filter / sort / paging --

    def set_filter(self, *, status: Optional[str] = None, priority: Optional[str] = None) -> None:
        self.query.status = status
        self.query.priority = priority
        self.query.page = 1
        self.refresh()

    def set_sort(self, sort_by: str, order: str = "desc") -> None:
        self.query.sortBy = sort_by
        self.query.order = order
        self.query.page = 1
        self.refresh()

    def set_search(self, text: str) -> None:
        """Record a keystroke; the request goes out once typing pauses."""
        self.query.search = text
        self.query.page = 1
        self._search.call()

    def go_to_page(self, page: int) -> None:
        last = max(self.pagination.pages, 1)
        page = min(max(page, 1), last)
        if page != self.query.page:
            self.query.page = page
            self.refresh()

    def next_page(self) -> None:
        self.go_to_page(self.query.page + 1)

    def prev_page(self) -> None:
        self.go_to_page(self.query.page - 1)

    # -- mutations --

    def create(self, **fields: Any) -> Dict[str, Any]:
        task = self.api.create_task(**fields)
        self.refresh()
        self.load_stats()
        return task

    def update(self, task_id: str, **fields: Any) -> Dict[str, Any]:
        task = self.api.update_task(task_id, **fields)
        self.refresh()
        self.load_stats()
        return task

    def delete(self, task_id: str) -> None:
        self.api.delete_task(task_id)
        self.refresh()
        self.load_stats()

    def close(self) -> None:
        self._search.cancel()
