"""Request bodies, one model per endpoint.

Field names on the wire are camelCase (``dueDate``, ``currentPassword``);
the models expose snake_case attributes and accept either spelling.
"""

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from schemas import TaskPriority, TaskStatus

NAME_MIN = 2
NAME_MAX = 50
BIO_MAX = 200
PASSWORD_MIN = 6
PASSWORD_MAX = 128
TITLE_MAX = 100
DESCRIPTION_MAX = 500
TAGS_MAX = 5

_DIGIT = re.compile(r"\d")


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


def _check_name(v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("Name is required")
    v = v.strip()
    if not NAME_MIN <= len(v) <= NAME_MAX:
        raise ValueError(f"Name must be {NAME_MIN}-{NAME_MAX} characters")
    return v


def _check_password(v: Any, label: str = "Password") -> str:
    if not isinstance(v, str) or not v:
        raise ValueError(f"{label} is required")
    if len(v) < PASSWORD_MIN:
        raise ValueError(f"{label} must be at least {PASSWORD_MIN} characters")
    if len(v) > PASSWORD_MAX:
        raise ValueError(f"{label} cannot exceed {PASSWORD_MAX} characters")
    if "\x00" in v:
        raise ValueError(f"{label} cannot contain NUL characters")
    if not _DIGIT.search(v):
        raise ValueError(f"{label} must contain at least one number")
    return v


def parse_due_date(v: Any) -> Optional[datetime]:
    """Accept an ISO-8601 date or datetime; naive values are taken as UTC."""
    if v is None:
        return None
    if isinstance(v, datetime):
        dt = v
    elif isinstance(v, str) and v.strip():
        try:
            dt = datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid date format")
    else:
        raise ValueError("Invalid date format")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_tags(v: Any) -> List[str]:
    if v is None:
        return []
    if not isinstance(v, list):
        raise ValueError("Tags must be an array")
    seen = []
    for tag in v:
        if not isinstance(tag, str):
            raise ValueError("Tags must be strings")
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    if len(seen) > TAGS_MAX:
        raise ValueError(f"A task can have at most {TAGS_MAX} tags")
    return seen


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class RegisterPayload(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _check_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def _email_strip(cls, v):
        return _strip(v)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v):
        return v.lower()

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, v):
        return _check_password(v)


class LoginPayload(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _email_strip(cls, v):
        return _strip(v)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v):
        return v.lower()

    @field_validator("password", mode="before")
    @classmethod
    def _password(cls, v):
        if not isinstance(v, str) or not v:
            raise ValueError("Password is required")
        return v


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _check_name(v)

    @field_validator("bio", mode="before")
    @classmethod
    def _bio(cls, v):
        v = _strip(v)
        if v is not None and len(v) > BIO_MAX:
            raise ValueError(f"Bio cannot exceed {BIO_MAX} characters")
        return v


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")

    @field_validator("current_password", mode="before")
    @classmethod
    def _current(cls, v):
        if not isinstance(v, str) or not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password", mode="before")
    @classmethod
    def _new(cls, v):
        return _check_password(v, "New password")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TaskUpdate(BaseModel):
    """Partial update: only the fields present in the body change."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    tags: Optional[List[str]] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Title is required")
        v = v.strip()
        if len(v) > TITLE_MAX:
            raise ValueError(f"Title cannot exceed {TITLE_MAX} characters")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v):
        v = _strip(v)
        if isinstance(v, str) and len(v) > DESCRIPTION_MAX:
            raise ValueError(f"Description cannot exceed {DESCRIPTION_MAX} characters")
        return v

    @field_validator("status", "priority", mode="before")
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name.capitalize()} cannot be empty")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v):
        return parse_due_date(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return normalize_tags(v)


class TaskCreate(TaskUpdate):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    title: str = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: List[str] = Field(default_factory=list)
