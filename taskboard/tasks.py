"""
Task engine: CRUD, filtering, drag-and-drop reorder and expansion.

Invariants kept here:
  - a task's status is always one of its project's column statuses; unknown
    statuses fall back to the first column ("assigned" if there are none)
  - new positions append to the end of the (project, status) partition
  - category, tag and assignee references only point at existing records;
    invalid ones are dropped rather than rejected

Every read returns expanded tasks: the stored record plus embedded
`project`, `category`, `tags` and `assignee` snapshots, joined fresh from the
registries on each call.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import NotFound, ValidationError
from .normalize import (
    coerce_position,
    new_id,
    normalize_text,
    sanitize_links,
    slugify_status,
    truncate,
    unique_ids,
    utc_now,
)
from .projects import ProjectRegistry
from .registries import CategoryRegistry, TagRegistry, UserRegistry
from .schema import FALLBACK_STATUS, Project, Task, TaskPriority
from .store import CollectionStore

logger = logging.getLogger(__name__)

TITLE_MAX = 200
DESCRIPTION_MAX = 2000


def ensure_status(project: Project, desired: Any) -> str:
    """Map a requested status onto one of the project's columns."""
    wanted = slugify_status(desired)
    for column in project.columns:
        if column.status == wanted:
            return column.status
    if project.columns:
        return project.columns[0].status
    return FALLBACK_STATUS


def next_position(tasks: Iterable[Task], project_id: str, status: str) -> int:
    """One past the highest position in the (project, status) partition, or 0."""
    positions = [t.position for t in tasks if t.project_id == project_id and t.status == status]
    return max(positions) + 1 if positions else 0


def _clean_date(value: Any) -> Optional[str]:
    return normalize_text(value) or None


class TaskEngine:
    """CRUD and board operations over the tasks collection."""

    collection = "tasks"

    def __init__(
        self,
        store: CollectionStore,
        projects: ProjectRegistry,
        categories: CategoryRegistry,
        tags: TagRegistry,
        users: UserRegistry,
    ):
        self.store = store
        self.projects = projects
        self.categories = categories
        self.tags = tags
        self.users = users

    # ── Persistence ───────────────────────────────────────────────────────

    def _load(self) -> List[Task]:
        return [Task.from_dict(doc) for doc in self.store.read_all(self.collection)]

    def _save(self, tasks: List[Task]) -> None:
        self.store.upsert_many(self.collection, [t.to_dict() for t in tasks])

    # ── Reference validation ──────────────────────────────────────────────

    def _clean_category(self, category_id: Any) -> Optional[str]:
        if not isinstance(category_id, str) or not category_id:
            return None
        return category_id if category_id in self.categories.ids() else None

    def _clean_tags(self, tag_ids: Any) -> List[str]:
        return unique_ids(tag_ids, self.tags.ids())

    def _clean_assignee(self, assignee_id: Any) -> Optional[str]:
        if not isinstance(assignee_id, str) or not assignee_id:
            return None
        return assignee_id if assignee_id in self.users.ids() else None

    def _clean_title(self, value: Any) -> str:
        title = truncate(value, TITLE_MAX)
        if not title:
            raise ValidationError("Title is required")
        return title

    # ── Expansion ─────────────────────────────────────────────────────────

    def expand(self, tasks: List[Task]) -> List[Dict[str, Any]]:
        """Embed project, category, tags and assignee snapshots into each task."""
        projects = {p.id: p for p in self.projects.list()}
        categories = {c.id: c for c in self.categories.list()}
        tags = {t.id: t for t in self.tags.list()}
        users = {u.id: u for u in self.users.list()}

        expanded = []
        for task in tasks:
            data = task.to_dict()
            project = projects.get(task.project_id)
            category = categories.get(task.category_id) if task.category_id else None
            assignee = users.get(task.assignee_id) if task.assignee_id else None
            data["project"] = project.to_dict() if project else None
            data["category"] = category.to_dict() if category else None
            data["tags"] = [tags[tag_id].to_dict() for tag_id in task.tag_ids if tag_id in tags]
            data["assignee"] = assignee.to_dict() if assignee else None
            expanded.append(data)
        return expanded

    # ── Reads ─────────────────────────────────────────────────────────────

    def list_all(
        self,
        project_id: Optional[str] = None,
        category_id: Optional[str] = None,
        tag_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assignee_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Dashboard listing. Every supplied filter must match; empty ones are ignored."""
        tasks = self._load()
        if project_id:
            tasks = [t for t in tasks if t.project_id == project_id]
        if category_id:
            tasks = [t for t in tasks if t.category_id == category_id]
        if tag_id:
            tasks = [t for t in tasks if tag_id in t.tag_ids]
        if status:
            tasks = [t for t in tasks if t.status == status]
        if priority:
            tasks = [t for t in tasks if t.priority.value == priority]
        if assignee_id:
            tasks = [t for t in tasks if t.assignee_id == assignee_id]
        needle = normalize_text(search).lower()
        if needle:
            tasks = [
                t for t in tasks
                if needle in t.title.lower() or needle in t.description.lower()
            ]
        tasks.sort(key=Task.sort_key)
        return self.expand(tasks)

    def list_by_project(self, project_id: str) -> List[Dict[str, Any]]:
        tasks = [t for t in self._load() if t.project_id == project_id]
        tasks.sort(key=Task.sort_key)
        return self.expand(tasks)

    def get(self, task_id: str) -> Optional[Dict[str, Any]]:
        doc = self.store.get_one(self.collection, task_id)
        if not doc:
            return None
        return self.expand([Task.from_dict(doc)])[0]

    # ── Writes ────────────────────────────────────────────────────────────

    def create(self, project_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        project = self.projects.get(project_id)
        if project is None:
            raise NotFound("Project not found")
        title = self._clean_title(fields.get("title"))

        with self.store.lock(self.collection):
            tasks = self._load()
            status = ensure_status(project, fields.get("status"))
            position = coerce_position(fields.get("position"))
            if position is None:
                position = next_position(tasks, project_id, status)

            now = utc_now()
            task = Task(
                id=new_id(),
                project_id=project_id,
                title=title,
                description=truncate(fields.get("description"), DESCRIPTION_MAX),
                category_id=self._clean_category(fields.get("categoryId")),
                tag_ids=self._clean_tags(fields.get("tagIds")),
                status=status,
                priority=TaskPriority.from_str(fields.get("priority")),
                assignee_id=self._clean_assignee(fields.get("assigneeId")),
                start_date=_clean_date(fields.get("startDate")) or now,
                due_date=_clean_date(fields.get("dueDate")),
                links=sanitize_links(fields.get("links")),
                position=position,
                created_at=now,
                updated_at=now,
            )
            self._save([task])
        logger.info(f"Created task {task.id} in {project_id}/{status} at position {position}")
        return self.expand([task])[0]

    def update(self, task_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update. Present fields are revalidated exactly as on create.

        Moving a task to another column without an explicit position appends it
        to the end of that column. An explicit position is trusted as given.
        """
        with self.store.lock(self.collection):
            tasks = self._load()
            current = next((t for t in tasks if t.id == task_id), None)
            if current is None:
                raise NotFound("Task not found")
            project = self.projects.get(current.project_id)
            if project is None:
                raise ValidationError("Project not found")

            task = Task.from_dict(current.to_dict())
            if "title" in fields:
                task.title = self._clean_title(fields["title"])
            if "description" in fields:
                task.description = truncate(fields["description"], DESCRIPTION_MAX)
            if "categoryId" in fields:
                task.category_id = self._clean_category(fields["categoryId"])
            if "tagIds" in fields:
                task.tag_ids = self._clean_tags(fields["tagIds"])
            if "status" in fields:
                task.status = ensure_status(project, fields["status"])
            if "priority" in fields:
                task.priority = TaskPriority.from_str(fields["priority"])
            if "assigneeId" in fields:
                task.assignee_id = self._clean_assignee(fields["assigneeId"])
            if "startDate" in fields:
                task.start_date = _clean_date(fields["startDate"])
            if "dueDate" in fields:
                task.due_date = _clean_date(fields["dueDate"])
            if "links" in fields:
                task.links = sanitize_links(fields["links"])

            position = coerce_position(fields.get("position"))
            if position is not None:
                task.position = position
            elif task.status != current.status:
                task.position = next_position(tasks, task.project_id, task.status)

            task.updated_at = utc_now()
            self._save([task])
        return self.expand([task])[0]

    def delete(self, task_id: str) -> bool:
        deleted = self.store.delete_one(self.collection, task_id)
        if deleted:
            logger.info(f"Deleted task {task_id}")
        return deleted

    def reorder(self, project_id: str, updates: Any) -> List[Dict[str, Any]]:
        """
        Apply a batch of {id, status?, position?} moves for one project.

        Entries for unknown tasks or tasks of other projects are skipped. All
        accepted moves are persisted in a single write after the whole batch
        has been validated.
        """
        if not isinstance(updates, (list, tuple)):
            raise ValidationError("Invalid payload")
        project = self.projects.get(project_id)
        if project is None:
            raise NotFound("Project not found")

        with self.store.lock(self.collection):
            by_id = {t.id: t for t in self._load()}
            changed: Dict[str, Task] = {}
            for update in updates:
                task = None
                if isinstance(update, dict) and isinstance(update.get("id"), str):
                    task = by_id.get(update["id"])
                if task is None or task.project_id != project_id:
                    logger.warning(f"Reorder on {project_id}: skipping {update!r}")
                    continue
                if update.get("status"):
                    task.status = ensure_status(project, update["status"])
                position = coerce_position(update.get("position"))
                if position is not None:
                    task.position = position
                task.updated_at = utc_now()
                changed[task.id] = task

            if changed:
                self._save(list(changed.values()))
        logger.info(f"Reordered {len(changed)} task(s) in project {project_id}")
        return self.expand(list(changed.values()))

    # ── Cascade helpers ───────────────────────────────────────────────────

    def _clear(self, matches, clear) -> int:
        """Mutate matching tasks in place; write back only when something changed."""
        with self.store.lock(self.collection):
            changed = []
            for task in self._load():
                if matches(task):
                    clear(task)
                    changed.append(task)
            if changed:
                self._save(changed)
        return len(changed)

    def clear_category_references(self, category_id: str) -> int:
        return self._clear(
            lambda t: t.category_id == category_id,
            lambda t: setattr(t, "category_id", None),
        )

    def clear_tag_references(self, tag_id: str) -> int:
        return self._clear(
            lambda t: tag_id in t.tag_ids,
            lambda t: setattr(t, "tag_ids", [i for i in t.tag_ids if i != tag_id]),
        )

    def clear_assignee_references(self, user_id: str) -> int:
        return self._clear(
            lambda t: t.assignee_id == user_id,
            lambda t: setattr(t, "assignee_id", None),
        )

    def move_stranded_tasks(self, project: Project) -> int:
        """
        Move tasks whose status is no longer one of the project's columns.

        Each one lands at the end of the column `ensure_status` picks for it.
        """
        statuses = set(project.statuses)
        with self.store.lock(self.collection):
            tasks = self._load()
            stranded = sorted(
                (t for t in tasks if t.project_id == project.id and t.status not in statuses),
                key=Task.sort_key,
            )
            for task in stranded:
                status = ensure_status(project, task.status)
                task.position = next_position(tasks, project.id, status)
                task.status = status
                task.updated_at = utc_now()
            if stranded:
                self._save(stranded)
        return len(stranded)

    def delete_all_for_project(self, project_id: str) -> int:
        """Remove every task of a project. Returns how many were removed."""
        with self.store.lock(self.collection):
            tasks = self._load()
            kept = [t for t in tasks if t.project_id != project_id]
            removed = len(tasks) - len(kept)
            if removed:
                self.store.replace_all(self.collection, [t.to_dict() for t in kept])
        return removed
