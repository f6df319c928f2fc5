"""
Database Schemas for Taskboard

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercased class name. Example: class User -> collection "user".
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, EmailStr


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO-8601; naive values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Role(str, Enum):
    STANDARD = "standard"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Sorting by priority means sorting by severity, not by the enum's spelling.
PRIORITY_RANK = {
    TaskPriority.LOW.value: 0,
    TaskPriority.MEDIUM.value: 1,
    TaskPriority.HIGH.value: 2,
}


class User(BaseModel):
    """
    Users collection schema
    Collection: "user"
    """
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr = Field(..., description="Unique, lowercased email address")
    password_hash: str = Field(..., description="BCrypt password hash")
    bio: Optional[str] = Field(None, max_length=200)
    avatar: Optional[str] = None
    role: Role = Role.STANDARD
    created_at: datetime = Field(default_factory=utcnow)


class Task(BaseModel):
    """
    Tasks collection schema
    Collection: "task"
    """
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    user_id: str = Field(..., description="Owner user id (stringified ObjectId)")
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    priority_rank: int = Field(default=PRIORITY_RANK[TaskPriority.MEDIUM.value])
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list, max_length=5)
    seq: int = Field(default=0, description="Insertion order, used to break sort ties")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
