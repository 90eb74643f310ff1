"""
Tests for the category, tag and user registries.
"""
import pytest

from taskboard.errors import NotFound, ValidationError
from taskboard.registries import CategoryRegistry, TagRegistry, UserRegistry


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Categories
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCategoryRegistry:

    @pytest.fixture
    def categories(self, store):
        return CategoryRegistry(store)

    def test_create_trims_and_defaults(self, categories):
        category = categories.create({"name": "  Design  "})
        assert category.name == "Design"
        assert category.color == "#6a67ce"
        assert category.description == ""
        assert category.created_at == category.updated_at
        assert categories.get(category.id).updated_at == category.created_at

    def test_duplicate_name_is_case_insensitive(self, categories):
        categories.create({"name": "Design"})
        with pytest.raises(ValidationError, match="already exists"):
            categories.create({"name": "design"})

    def test_empty_name_rejected(self, categories):
        with pytest.raises(ValidationError, match="Name is required"):
            categories.create({"name": "   "})
        with pytest.raises(ValidationError):
            categories.create({})

    def test_long_fields_are_truncated(self, categories):
        category = categories.create({"name": "n" * 300, "description": "d" * 900})
        assert len(category.name) == 120
        assert len(category.description) == 400

    def test_list_sorted_by_name(self, categories):
        for name in ("ops", "Backend", "design"):
            categories.create({"name": name})
        assert [c.name for c in categories.list()] == ["Backend", "design", "ops"]

    def test_update_partial_fields(self, categories):
        category = categories.create({"name": "Design", "color": "#000000", "description": "UI"})
        updated = categories.update(category.id, {"description": "UX"})
        assert updated.name == "Design"
        assert updated.color == "#000000"
        assert updated.description == "UX"
        assert categories.get(category.id).description == "UX"

    def test_update_blank_color_restores_default(self, categories):
        category = categories.create({"name": "Design", "color": "#000000"})
        assert categories.update(category.id, {"color": ""}).color == "#6a67ce"

    def test_update_keeps_own_name_with_new_case(self, categories):
        category = categories.create({"name": "Design"})
        assert categories.update(category.id, {"name": "DESIGN"}).name == "DESIGN"

    def test_update_to_other_name_rejected(self, categories):
        categories.create({"name": "Design"})
        other = categories.create({"name": "Ops"})
        with pytest.raises(ValidationError):
            categories.update(other.id, {"name": "design"})

    def test_update_missing_raises_not_found(self, categories):
        with pytest.raises(NotFound):
            categories.update("missing", {"name": "x"})

    def test_delete(self, categories):
        category = categories.create({"name": "Design"})
        assert categories.delete(category.id) is True
        assert categories.delete(category.id) is False
        assert categories.get(category.id) is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tags
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestTagRegistry:

    @pytest.fixture
    def tags(self, store):
        return TagRegistry(store)

    def test_create_and_list(self, tags):
        tags.create({"name": "urgent", "description": "drop everything"})
        tags.create({"name": "backend"})
        assert [t.name for t in tags.list()] == ["backend", "urgent"]

    def test_duplicate_rejected(self, tags):
        tags.create({"name": "Urgent"})
        with pytest.raises(ValidationError, match="Tag with this name already exists"):
            tags.create({"name": "URGENT"})

    def test_update_empty_name_rejected(self, tags):
        tag = tags.create({"name": "urgent"})
        with pytest.raises(ValidationError):
            tags.update(tag.id, {"name": ""})
        assert tags.get(tag.id).name == "urgent"

    def test_ids(self, tags):
        a = tags.create({"name": "a"})
        b = tags.create({"name": "b"})
        assert tags.ids() == {a.id, b.id}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestUserRegistry:

    @pytest.fixture
    def users(self, store):
        return UserRegistry(store)

    def test_create_normalizes_email_and_hides_hash(self, users):
        user = users.create({"name": "Ada", "email": "  Ada@Example.COM ", "password": "pw"})
        assert user.email == "ada@example.com"
        assert user.role == "member"
        assert user.password_hash == ""
        assert "passwordHash" not in user.to_dict()

    def test_password_is_salted_hash(self, users, store):
        users.create({"name": "A", "email": "a@example.com", "password": "same"})
        users.create({"name": "B", "email": "b@example.com", "password": "same"})
        hashes = [doc["passwordHash"] for doc in store.read_all("users")]
        assert all(h.startswith("scrypt:") for h in hashes)
        assert "same" not in hashes[0]
        assert hashes[0] != hashes[1]

    def test_list_and_get_never_expose_hash(self, users):
        user = users.create({"name": "Ada", "email": "ada@example.com", "password": "pw"})
        assert all(u.password_hash == "" for u in users.list())
        assert users.get(user.id).password_hash == ""
        assert "passwordHash" not in users.get(user.id).to_dict()

    def test_required_fields(self, users):
        with pytest.raises(ValidationError, match="required"):
            users.create({"name": "Ada", "email": "ada@example.com"})
        with pytest.raises(ValidationError):
            users.create({"name": "", "email": "ada@example.com", "password": "pw"})
        with pytest.raises(ValidationError):
            users.create({"name": "Ada", "email": "  ", "password": "pw"})

    def test_duplicate_email_case_insensitive(self, users):
        users.create({"name": "Ada", "email": "ada@example.com", "password": "pw"})
        with pytest.raises(ValidationError, match="email already exists"):
            users.create({"name": "Other", "email": "ADA@example.com", "password": "pw"})

    def test_long_fields_truncated(self, users):
        user = users.create({"name": "n" * 200, "email": "e" * 200 + "@x.io", "password": "pw"})
        assert len(user.name) == 120
        assert len(user.email) == 160

    def test_verify_password(self, users):
        users.create({"name": "Ada", "email": "ada@example.com", "password": "s3cret"})
        assert users.verify_password("ADA@example.com", "s3cret")
        assert not users.verify_password("ada@example.com", "wrong")
        assert not users.verify_password("nobody@example.com", "s3cret")

    def test_update_rehashes_password_only_when_given(self, users):
        user = users.create({"name": "Ada", "email": "ada@example.com", "password": "old"})
        users.update(user.id, {"name": "Ada L.", "password": ""})
        assert users.verify_password("ada@example.com", "old")

        updated = users.update(user.id, {"password": "new", "role": "admin"})
        assert updated.role == "admin"
        assert users.verify_password("ada@example.com", "new")
        assert not users.verify_password("ada@example.com", "old")

    def test_update_email_duplicate_rejected(self, users):
        users.create({"name": "Ada", "email": "ada@example.com", "password": "pw"})
        bob = users.create({"name": "Bob", "email": "bob@example.com", "password": "pw"})
        with pytest.raises(ValidationError):
            users.update(bob.id, {"email": "Ada@Example.com"})

    def test_update_missing_user(self, users):
        with pytest.raises(NotFound, match="User not found"):
            users.update("missing", {"name": "x"})

    def test_seed_user_only_when_empty(self, users):
        seeded = users.ensure_seed_user("Team Lead", "lead@example.com", "changeme")
        assert seeded is not None
        assert users.ensure_seed_user("Team Lead", "lead@example.com", "changeme") is None
        assert [u.email for u in users.list()] == ["lead@example.com"]
        assert users.verify_password("lead@example.com", "changeme")


def test_new_records_share_one_timestamp(store):
    tag = TagRegistry(store).create({"name": "urgent"})
    user = UserRegistry(store).create({"name": "Ada", "email": "ada@example.com", "password": "pw"})
    assert tag.updated_at == tag.created_at
    assert user.updated_at == user.created_at
