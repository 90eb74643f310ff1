"""
Reference registries: categories, tags and users.

Flat entities with a case-insensitive unique key (name, or email for users).
Text fields are trimmed and silently truncated to their maximum length.
"""
import dataclasses
import logging
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .errors import NotFound, ValidationError
from .normalize import name_taken, new_id, normalize_text, truncate, utc_now
from .schema import Category, Tag, User
from .store import CollectionStore

logger = logging.getLogger(__name__)

NAME_MAX = 120
DESCRIPTION_MAX = 400
EMAIL_MAX = 160
DEFAULT_COLOR = "#6a67ce"


def hash_password(password: str) -> str:
    """One-way scrypt hash with a random per-user salt."""
    return generate_password_hash(password, method="scrypt", salt_length=16)


class _Registry:
    """Shared list/get/delete over one collection."""

    collection = ""
    model = None
    label = ""

    def __init__(self, store: CollectionStore):
        self.store = store

    def _load(self) -> list:
        return [self.model.from_dict(doc) for doc in self.store.read_all(self.collection)]

    def _save(self, item) -> None:
        self.store.upsert_one(self.collection, item.to_dict())

    def list(self) -> list:
        """All records sorted by name."""
        return sorted(self._load(), key=lambda item: item.name.lower())

    def get(self, item_id: str):
        doc = self.store.get_one(self.collection, item_id)
        return self.model.from_dict(doc) if doc else None

    def ids(self) -> set:
        return {item.id for item in self._load()}

    def _require(self, items: list, item_id: str):
        for item in items:
            if item.id == item_id:
                return item
        raise NotFound(f"{self.label} not found")

    def delete(self, item_id: str) -> bool:
        deleted = self.store.delete_one(self.collection, item_id)
        if deleted:
            logger.info(f"Deleted {self.label.lower()} {item_id}")
        return deleted


class _NamedRegistry(_Registry):
    """Registry whose records are unique by name."""

    def _clean_name(self, value: Any, items: list, exclude_id: Optional[str] = None) -> str:
        name = truncate(value, NAME_MAX)
        if not name:
            raise ValidationError("Name is required")
        if name_taken(name, items, exclude_id=exclude_id):
            raise ValidationError(f"{self.label} with this name already exists")
        return name


class CategoryRegistry(_NamedRegistry):
    collection = "categories"
    model = Category
    label = "Category"

    def create(self, fields: Dict[str, Any]) -> Category:
        with self.store.lock(self.collection):
            items = self._load()
            category = Category(
                id=new_id(),
                name=self._clean_name(fields.get("name"), items),
                color=normalize_text(fields.get("color")) or DEFAULT_COLOR,
                description=truncate(fields.get("description"), DESCRIPTION_MAX),
            )
            self._save(category)
        logger.info(f"Created category {category.id} ({category.name})")
        return category

    def update(self, category_id: str, fields: Dict[str, Any]) -> Category:
        with self.store.lock(self.collection):
            items = self._load()
            category = self._require(items, category_id)
            if "name" in fields:
                category.name = self._clean_name(fields["name"], items, exclude_id=category_id)
            if "color" in fields:
                category.color = normalize_text(fields["color"]) or DEFAULT_COLOR
            if "description" in fields:
                category.description = truncate(fields["description"], DESCRIPTION_MAX)
            category.updated_at = utc_now()
            self._save(category)
        return category


class TagRegistry(_NamedRegistry):
    collection = "tags"
    model = Tag
    label = "Tag"

    def create(self, fields: Dict[str, Any]) -> Tag:
        with self.store.lock(self.collection):
            items = self._load()
            tag = Tag(
                id=new_id(),
                name=self._clean_name(fields.get("name"), items),
                description=truncate(fields.get("description"), DESCRIPTION_MAX),
            )
            self._save(tag)
        logger.info(f"Created tag {tag.id} ({tag.name})")
        return tag

    def update(self, tag_id: str, fields: Dict[str, Any]) -> Tag:
        with self.store.lock(self.collection):
            items = self._load()
            tag = self._require(items, tag_id)
            if "name" in fields:
                tag.name = self._clean_name(fields["name"], items, exclude_id=tag_id)
            if "description" in fields:
                tag.description = truncate(fields["description"], DESCRIPTION_MAX)
            tag.updated_at = utc_now()
            self._save(tag)
        return tag


class UserRegistry(_Registry):
    """
    Users, unique by lowercased email.

    Reads never expose the password hash: list() and get() return copies with
    it blanked, and User.to_dict() leaves it out unless asked for persistence.
    """

    collection = "users"
    model = User
    label = "User"

    def _save(self, item: User) -> None:
        self.store.upsert_one(self.collection, item.to_dict(include_password=True))

    @staticmethod
    def _public(user: User) -> User:
        return dataclasses.replace(user, password_hash="")

    def list(self) -> List[User]:
        return [self._public(user) for user in super().list()]

    def get(self, user_id: str) -> Optional[User]:
        user = super().get(user_id)
        return self._public(user) if user else None

    def _clean_email(self, value: Any, items: List[User], exclude_id: Optional[str] = None) -> str:
        email = normalize_text(value).lower()[:EMAIL_MAX]
        if not email:
            raise ValidationError("Email is required")
        if any(user.email.lower() == email and user.id != exclude_id for user in items):
            raise ValidationError("User with this email already exists")
        return email

    def create(self, fields: Dict[str, Any]) -> User:
        name = truncate(fields.get("name"), NAME_MAX)
        password = fields.get("password")
        if not name or not normalize_text(fields.get("email")) or not isinstance(password, str) or not password:
            raise ValidationError("Name, email and password are required")

        with self.store.lock(self.collection):
            items = self._load()
            user = User(
                id=new_id(),
                name=name,
                email=self._clean_email(fields.get("email"), items),
                role=normalize_text(fields.get("role")) or "member",
                password_hash=hash_password(password),
            )
            self._save(user)
        logger.info(f"Created user {user.id} ({user.email})")
        return self._public(user)

    def update(self, user_id: str, fields: Dict[str, Any]) -> User:
        with self.store.lock(self.collection):
            items = self._load()
            user = self._require(items, user_id)
            if "name" in fields:
                name = truncate(fields["name"], NAME_MAX)
                if not name:
                    raise ValidationError("Name is required")
                user.name = name
            if "email" in fields:
                user.email = self._clean_email(fields["email"], items, exclude_id=user_id)
            if "role" in fields:
                user.role = normalize_text(fields["role"]) or user.role
            password = fields.get("password")
            if isinstance(password, str) and password:
                user.password_hash = hash_password(password)
            user.updated_at = utc_now()
            self._save(user)
        return self._public(user)

    def verify_password(self, email: str, password: str) -> bool:
        """Check a password against the stored hash of the user with `email`."""
        wanted = normalize_text(email).lower()
        for user in self._load():
            if user.email == wanted:
                return bool(user.password_hash) and check_password_hash(user.password_hash, password)
        return False

    def ensure_seed_user(self, name: str, email: str, password: str, role: str = "member") -> Optional[User]:
        """Create the bootstrap user when no user exists yet. Returns it, or None."""
        with self.store.lock(self.collection):
            if self.store.count(self.collection) > 0:
                return None
            user = self.create({"name": name, "email": email, "password": password, "role": role})
        logger.info(f"Seeded default user {user.email}")
        return user
