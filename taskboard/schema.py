"""
Task board schema.

Entities and how they reference each other:
  Project  --categoryIds-->  Category
  Task     --projectId-->    Project   (required)
  Task     --categoryId-->   Category  (nullable)
  Task     --tagIds-->       Tag       (set)
  Task     --assigneeId-->   User      (nullable)

Every entity serializes to a camelCase dict, which is both the persisted
document and the wire shape.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from .normalize import new_id, utc_now


class TaskPriority(Enum):
    """Task priorities, lowest first."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def from_str(cls, value: Any) -> "TaskPriority":
        if not isinstance(value, str):
            return cls.MEDIUM
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return cls.MEDIUM


class _Stamped:
    """A record that has never been updated carries updatedAt == createdAt."""

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at


FALLBACK_STATUS = "assigned"
DONE_STATUS = "done"

DEFAULT_COLUMNS = (
    ("assigned", "Assigned"),
    ("in_progress", "In Progress"),
    ("done", "Done"),
)


@dataclass
class Category(_Stamped):
    id: str
    name: str
    color: str = "#6a67ce"
    description: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            color=data.get("color") or "#6a67ce",
            description=data.get("description", ""),
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class Tag(_Stamped):
    id: str
    name: str
    description: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class User(_Stamped):
    id: str
    name: str
    email: str
    role: str = "member"
    password_hash: str = field(default="", repr=False)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        """Serialize; the password hash is only included for persistence."""
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if include_password:
            data["passwordHash"] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role") or "member",
            password_hash=data.get("passwordHash", ""),
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class Column:
    """One workflow stage of a project."""
    status: str
    title: str
    order: float = 0
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "status": self.status, "title": self.title, "order": self.order}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(
            id=data.get("id") or new_id(),
            status=data.get("status", ""),
            title=data.get("title", ""),
            order=data.get("order", 0),
        )


def default_columns() -> List[Column]:
    """Fresh copy of the assigned -> in_progress -> done workflow."""
    return [
        Column(status=status, title=title, order=index)
        for index, (status, title) in enumerate(DEFAULT_COLUMNS)
    ]


@dataclass
class Project(_Stamped):
    id: str
    name: str
    description: str = ""
    category_ids: List[str] = field(default_factory=list)
    links: List[Dict[str, str]] = field(default_factory=list)
    columns: List[Column] = field(default_factory=default_columns)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    @property
    def statuses(self) -> List[str]:
        return [column.status for column in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "categoryIds": list(self.category_ids),
            "links": [dict(link) for link in self.links],
            "columns": [column.to_dict() for column in self.columns],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            category_ids=list(data.get("categoryIds") or []),
            links=list(data.get("links") or []),
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class Task(_Stamped):
    """A card on a project's board."""

    id: str
    project_id: str
    title: str
    description: str = ""
    category_id: Optional[str] = None
    tag_ids: List[str] = field(default_factory=list)
    status: str = FALLBACK_STATUS
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[str] = None
    start_date: Optional[str] = field(default_factory=utc_now)
    due_date: Optional[str] = None
    links: List[Dict[str, str]] = field(default_factory=list)
    position: int = 0
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def sort_key(self):
        """Board order: project, then column, then position, oldest first on ties."""
        return (self.project_id, self.status, self.position, self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "categoryId": self.category_id,
            "tagIds": list(self.tag_ids),
            "status": self.status,
            "priority": self.priority.value,
            "assigneeId": self.assignee_id,
            "startDate": self.start_date,
            "dueDate": self.due_date,
            "links": [dict(link) for link in self.links],
            "position": self.position,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            project_id=data.get("projectId", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            category_id=data.get("categoryId"),
            tag_ids=list(data.get("tagIds") or []),
            status=data.get("status") or FALLBACK_STATUS,
            priority=TaskPriority.from_str(data.get("priority")),
            assignee_id=data.get("assigneeId"),
            start_date=data.get("startDate"),
            due_date=data.get("dueDate"),
            links=list(data.get("links") or []),
            position=int(data.get("position") or 0),
            created_at=data.get("createdAt") or utc_now(),
            updated_at=data.get("updatedAt") or "",
        )
