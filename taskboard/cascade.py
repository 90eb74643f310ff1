"""
Cascade coordinator: deletes an owner record, then cleans up the tasks that
referenced it.

  category deleted -> tasks.categoryId cleared
  tag deleted      -> tag id removed from tasks.tagIds
  user deleted     -> tasks.assigneeId cleared
  project deleted  -> the project's tasks deleted

The owner is always deleted first; cleanup only runs when that delete found
the record.

A column update goes through here too: tasks left on a removed status are
moved to the end of the first column.
"""
import logging
from typing import Any, Callable, Dict, List

from .projects import ProjectRegistry
from .registries import CategoryRegistry, TagRegistry, UserRegistry
from .schema import Project
from .tasks import TaskEngine

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    """Routes owner deletes to the matching task cleanup."""

    def __init__(
        self,
        categories: CategoryRegistry,
        tags: TagRegistry,
        users: UserRegistry,
        projects: ProjectRegistry,
        tasks: TaskEngine,
    ):
        self.categories = categories
        self.tags = tags
        self.users = users
        self.projects = projects
        self.tasks = tasks
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers."""
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")

    def update_project(self, project_id: str, fields: Dict[str, Any]) -> Project:
        project = self.projects.update(project_id, fields)
        if "columns" not in fields:
            return project
        moved = self.tasks.move_stranded_tasks(project)
        if moved:
            logger.info(f"Project {project_id} columns changed, moved {moved} task(s)")
            self._emit("project_columns_changed", project_id=project_id, tasks_changed=moved)
        return project

    def delete_category(self, category_id: str) -> bool:
        if not self.categories.delete(category_id):
            return False
        cleared = self.tasks.clear_category_references(category_id)
        logger.info(f"Category {category_id} deleted, cleared on {cleared} task(s)")
        self._emit("category_deleted", category_id=category_id, tasks_changed=cleared)
        return True

    def delete_tag(self, tag_id: str) -> bool:
        if not self.tags.delete(tag_id):
            return False
        cleared = self.tasks.clear_tag_references(tag_id)
        logger.info(f"Tag {tag_id} deleted, removed from {cleared} task(s)")
        self._emit("tag_deleted", tag_id=tag_id, tasks_changed=cleared)
        return True

    def delete_user(self, user_id: str) -> bool:
        if not self.users.delete(user_id):
            return False
        cleared = self.tasks.clear_assignee_references(user_id)
        logger.info(f"User {user_id} deleted, unassigned from {cleared} task(s)")
        self._emit("user_deleted", user_id=user_id, tasks_changed=cleared)
        return True

    def delete_project(self, project_id: str) -> bool:
        if not self.projects.delete(project_id):
            return False
        removed = self.tasks.delete_all_for_project(project_id)
        logger.info(f"Project {project_id} deleted with {removed} task(s)")
        self._emit("project_deleted", project_id=project_id, tasks_changed=removed)
        return True
