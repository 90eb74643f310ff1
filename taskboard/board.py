"""
TaskBoard: the store and every service, wired together once per process.
"""
import logging
from typing import Optional

from .cascade import CascadeCoordinator
from .config import Config
from .projects import ProjectRegistry
from .registries import CategoryRegistry, TagRegistry, UserRegistry
from .store import CollectionStore
from .tasks import TaskEngine

logger = logging.getLogger(__name__)


class TaskBoard:
    """Owns the collection store and the services built on top of it."""

    def __init__(self, config: Optional[Config] = None, store: Optional[CollectionStore] = None):
        self.config = config or Config()
        if store is None:
            self.config.resolve_paths()
            store = CollectionStore(self.config.db_path)
        self.store = store
        self.categories = CategoryRegistry(self.store)
        self.tags = TagRegistry(self.store)
        self.users = UserRegistry(self.store)
        self.projects = ProjectRegistry(self.store, self.categories)
        self.tasks = TaskEngine(self.store, self.projects, self.categories, self.tags, self.users)
        self.cascade = CascadeCoordinator(
            self.categories, self.tags, self.users, self.projects, self.tasks
        )
        self._initialized = False

    def initialize(self) -> None:
        """One-time start-up work: make sure at least one user exists."""
        if self._initialized:
            return
        self.users.ensure_seed_user(
            name=self.config.seed_user_name,
            email=self.config.seed_user_email,
            password=self.config.seed_user_password,
            role=self.config.seed_user_role,
        )
        self._initialized = True
        logger.info(f"Task board ready (db={self.store.db_path})")

    @classmethod
    def open(cls, config: Optional[Config] = None) -> "TaskBoard":
        """Build and initialize a board."""
        board = cls(config)
        board.initialize()
        return board
