"""
Project registry and workflow column validation.

Column rules:
  - each column status is slugified ("In Review" -> "in_review")
  - statuses are unique within a project
  - at least one column has status "done"
  - columns are ordered by their `order` field; updates renumber it 0..n-1

A project created without a column list (missing, empty or not a list) gets
the default three-column workflow.
Any other invalid column set is rejected and the stored project is left alone.
"""
import logging
from typing import Any, Dict, List, Optional

from .errors import NotFound, ValidationError
from .normalize import (
    coerce_order,
    name_taken,
    new_id,
    sanitize_links,
    slugify_status,
    truncate,
    unique_ids,
    utc_now,
)
from .registries import CategoryRegistry
from .schema import DONE_STATUS, Column, Project, default_columns
from .store import CollectionStore

logger = logging.getLogger(__name__)

NAME_MAX = 200
DESCRIPTION_MAX = 1000
COLUMN_TITLE_MAX = 120


def sanitize_columns(columns: Any) -> List[Column]:
    """
    Validate and normalize a column list, sorted by order.

    Entries without a status or title are ignored. Raises ValidationError on
    duplicate statuses or when no column represents the done status.
    """
    if not isinstance(columns, (list, tuple)):
        raise ValidationError("Columns must be a list")

    seen = set()
    result = []
    for index, column in enumerate(columns):
        if not isinstance(column, dict) or not column.get("status") or not column.get("title"):
            continue
        status = slugify_status(column["status"])
        if status in seen:
            raise ValidationError("Each column must have a unique status")
        seen.add(status)
        result.append(Column(
            id=column.get("id") or new_id(),
            status=status,
            title=truncate(column["title"], COLUMN_TITLE_MAX) or "Column",
            order=coerce_order(column.get("order"), index),
        ))

    if DONE_STATUS not in seen:
        raise ValidationError("At least one column must represent the Done status")

    return sorted(result, key=lambda c: c.order)


class ProjectRegistry:
    """CRUD over projects."""

    collection = "projects"

    def __init__(self, store: CollectionStore, categories: CategoryRegistry):
        self.store = store
        self.categories = categories

    def _load(self) -> List[Project]:
        return [Project.from_dict(doc) for doc in self.store.read_all(self.collection)]

    def _save(self, project: Project) -> None:
        self.store.upsert_one(self.collection, project.to_dict())

    def _clean_name(self, value: Any, projects: List[Project], exclude_id: Optional[str] = None) -> str:
        name = truncate(value, NAME_MAX)
        if not name:
            raise ValidationError("Name is required")
        if name_taken(name, projects, exclude_id=exclude_id):
            raise ValidationError("Project with this name already exists")
        return name

    def _clean_category_ids(self, category_ids: Any) -> List[str]:
        return unique_ids(category_ids, self.categories.ids())

    def list(self) -> List[Project]:
        return sorted(self._load(), key=lambda p: p.name.lower())

    def get(self, project_id: str) -> Optional[Project]:
        doc = self.store.get_one(self.collection, project_id)
        return Project.from_dict(doc) if doc else None

    def create(self, fields: Dict[str, Any]) -> Project:
        columns = fields.get("columns")
        if not isinstance(columns, (list, tuple)) or len(columns) == 0:
            columns = default_columns()
        else:
            columns = sanitize_columns(columns)

        with self.store.lock(self.collection):
            projects = self._load()
            project = Project(
                id=new_id(),
                name=self._clean_name(fields.get("name"), projects),
                description=truncate(fields.get("description"), DESCRIPTION_MAX),
                category_ids=self._clean_category_ids(fields.get("categoryIds")),
                links=sanitize_links(fields.get("links")),
                columns=columns,
            )
            self._save(project)
        logger.info(f"Created project {project.id} ({project.name}) with {len(columns)} columns")
        return project

    def update(self, project_id: str, fields: Dict[str, Any]) -> Project:
        with self.store.lock(self.collection):
            projects = self._load()
            project = next((p for p in projects if p.id == project_id), None)
            if project is None:
                raise NotFound("Project not found")

            if "name" in fields:
                project.name = self._clean_name(fields["name"], projects, exclude_id=project_id)
            if "description" in fields:
                project.description = truncate(fields["description"], DESCRIPTION_MAX)
            if "categoryIds" in fields and isinstance(fields["categoryIds"], (list, tuple)):
                project.category_ids = self._clean_category_ids(fields["categoryIds"])
            if "links" in fields:
                project.links = sanitize_links(fields["links"])
            if "columns" in fields:
                columns = sanitize_columns(fields["columns"])
                for index, column in enumerate(columns):
                    column.order = index
                project.columns = columns

            project.updated_at = utc_now()
            self._save(project)
        return project

    def delete(self, project_id: str) -> bool:
        deleted = self.store.delete_one(self.collection, project_id)
        if deleted:
            logger.info(f"Deleted project {project_id}")
        return deleted
