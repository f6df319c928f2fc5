"""Task store: owner-scoped CRUD, filtered listing and status/priority stats.

Every query carries the owner's id in its filter. A task that exists but
belongs to someone else is indistinguishable from one that does not exist:
both raise NotFound.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pydantic import BaseModel, ValidationError as PydanticValidationError

from backend.errors import NotFound, from_pydantic
from backend.payloads import TaskCreate, TaskUpdate
from database import as_id, create_document, get_db, next_sequence
from schemas import PRIORITY_RANK, Task, TaskPriority, TaskStatus, to_iso, utcnow

logger = logging.getLogger(__name__)

COLLECTION = "task"

SORT_FIELDS = {
    "createdAt": "created_at",
    "dueDate": "due_date",
    "priority": "priority_rank",
    "title": "title",
}
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class TaskFilter:
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str = "createdAt"
    order: str = "desc"

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(f"unsupported sort field: {self.sort_by}")
        if self.order not in ("asc", "desc"):
            raise ValueError(f"unsupported sort order: {self.order}")


@dataclass
class TaskPage:
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def pagination(self) -> Dict[str, int]:
        return {"total": self.total, "page": self.page, "pages": self.pages, "limit": self.limit}


def serialize_task(doc: dict) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "user": doc.get("user_id"),
        "title": doc.get("title"),
        "description": doc.get("description"),
        "status": doc.get("status", TaskStatus.TODO.value),
        "priority": doc.get("priority", TaskPriority.MEDIUM.value),
        "dueDate": to_iso(doc.get("due_date")),
        "tags": doc.get("tags", []),
        "createdAt": to_iso(doc.get("created_at")),
        "updatedAt": to_iso(doc.get("updated_at")),
    }


def _coerce(model: type, fields: Union[BaseModel, dict]) -> BaseModel:
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields)
    except PydanticValidationError as exc:
        raise from_pydantic(exc)


def _search_clause(text: str) -> Dict[str, Any]:
    pattern = re.compile(re.escape(text), re.IGNORECASE)
    return {"$or": [{"title": pattern}, {"description": pattern}, {"tags": pattern}]}


class TaskStore:
    def __init__(self, db: Database):
        self.db = db
        self.collection = db[COLLECTION]

    def _owned(self, owner_id: str, task_id: str) -> Dict[str, Any]:
        oid = as_id(task_id)
        if oid is None:
            raise NotFound("Task not found.")
        return {"_id": oid, "user_id": str(owner_id)}

    def list(self, owner_id: str, flt: Optional[TaskFilter] = None) -> TaskPage:
        flt = flt or TaskFilter()
        query: Dict[str, Any] = {"user_id": str(owner_id)}
        if flt.status:
            query["status"] = flt.status
        if flt.priority:
            query["priority"] = flt.priority
        if flt.search and flt.search.strip():
            query.update(_search_clause(flt.search.strip()))

        direction = ASCENDING if flt.order == "asc" else DESCENDING
        sort = [(SORT_FIELDS[flt.sort_by], direction), ("seq", ASCENDING)]

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort(sort)
            .skip((flt.page - 1) * flt.limit)
            .limit(flt.limit)
        )
        return TaskPage(
            tasks=[serialize_task(d) for d in cursor],
            total=total,
            page=flt.page,
            limit=flt.limit,
        )

    def create(self, owner_id: str, fields: Union[TaskCreate, dict]) -> Dict[str, Any]:
        data = _coerce(TaskCreate, fields).model_dump()
        now = utcnow()
        doc = Task(
            user_id=str(owner_id),
            title=data["title"],
            description=data.get("description"),
            status=data["status"],
            priority=data["priority"],
            priority_rank=PRIORITY_RANK[data["priority"]],
            due_date=data.get("due_date"),
            tags=data.get("tags") or [],
            seq=next_sequence(self.db, COLLECTION),
            created_at=now,
            updated_at=now,
        )
        task_id = create_document(COLLECTION, doc, self.db)
        logger.debug("Created task %s for user %s", task_id, owner_id)
        return self.get(owner_id, task_id)

    def get(self, owner_id: str, task_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one(self._owned(owner_id, task_id))
        if doc is None:
            raise NotFound("Task not found.")
        return serialize_task(doc)

    def update(self, owner_id: str, task_id: str, fields: Union[TaskUpdate, dict]) -> Dict[str, Any]:
        """Change only the supplied fields; match and mutate in one step."""
        query = self._owned(owner_id, task_id)
        updates = _coerce(TaskUpdate, fields).model_dump(exclude_unset=True)
        if "tags" in updates and updates["tags"] is None:
            updates["tags"] = []
        if "priority" in updates:
            updates["priority_rank"] = PRIORITY_RANK[updates["priority"]]
        updates["updated_at"] = utcnow()
        doc = self.collection.find_one_and_update(
            query,
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFound("Task not found.")
        return serialize_task(doc)

    def delete(self, owner_id: str, task_id: str) -> None:
        doc = self.collection.find_one_and_delete(self._owned(owner_id, task_id))
        if doc is None:
            raise NotFound("Task not found.")
        logger.debug("Deleted task %s for user %s", task_id, owner_id)

    def stats_summary(self, owner_id: str) -> Dict[str, Dict[str, int]]:
        match = {"$match": {"user_id": str(owner_id)}}

        summary = {s.value: 0 for s in TaskStatus}
        summary["total"] = 0
        for row in self.collection.aggregate([match, {"$group": {"_id": "$status", "count": {"$sum": 1}}}]):
            if row["_id"] in summary:
                summary[row["_id"]] = row["count"]
            summary["total"] += row["count"]

        priority = {p.value: 0 for p in TaskPriority}
        for row in self.collection.aggregate([match, {"$group": {"_id": "$priority", "count": {"$sum": 1}}}]):
            if row["_id"] in priority:
                priority[row["_id"]] = row["count"]

        return {"summary": summary, "priority": priority}


def get_task_store(db: Database = Depends(get_db)) -> TaskStore:
    return TaskStore(db)
