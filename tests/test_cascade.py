"""
Tests for cascading deletes, column changes and the event hooks.
"""
import pytest


@pytest.fixture
def seeded(board, project):
    design = board.categories.create({"name": "Design"})
    tag_a = board.tags.create({"name": "A"})
    tag_b = board.tags.create({"name": "B"})
    ada = board.users.create({"name": "Ada", "email": "ada@example.com", "password": "pw"})
    task = board.tasks.create(project.id, {
        "title": "Wireframes",
        "categoryId": design.id,
        "tagIds": [tag_a.id, tag_b.id],
        "assigneeId": ada.id,
    })
    untouched = board.tasks.create(project.id, {"title": "Copy"})
    return {
        "design": design, "a": tag_a, "b": tag_b, "ada": ada,
        "task": task, "untouched": untouched,
    }


def test_delete_category_clears_task_reference(board, seeded):
    assert board.cascade.delete_category(seeded["design"].id) is True
    task = board.tasks.get(seeded["task"]["id"])
    assert task["categoryId"] is None
    assert task["category"] is None
    assert board.categories.get(seeded["design"].id) is None


def test_delete_tag_removes_only_that_tag(board, seeded):
    assert board.cascade.delete_tag(seeded["a"].id) is True
    task = board.tasks.get(seeded["task"]["id"])
    assert task["tagIds"] == [seeded["b"].id]
    assert [t["name"] for t in task["tags"]] == ["B"]


def test_delete_user_unassigns_tasks(board, seeded):
    assert board.cascade.delete_user(seeded["ada"].id) is True
    task = board.tasks.get(seeded["task"]["id"])
    assert task["assigneeId"] is None
    assert task["assignee"] is None
    assert board.users.get(seeded["ada"].id) is None


def test_delete_project_removes_its_tasks(board, seeded, project):
    other = board.projects.create({"name": "Other"})
    survivor = board.tasks.create(other.id, {"title": "Keep me"})

    assert board.cascade.delete_project(project.id) is True
    assert board.projects.get(project.id) is None
    assert board.tasks.list_by_project(project.id) == []
    assert [t["id"] for t in board.tasks.list_all()] == [survivor["id"]]


def test_delete_missing_owner_returns_false(board, seeded):
    assert board.cascade.delete_category("missing") is False
    assert board.cascade.delete_tag("missing") is False
    assert board.cascade.delete_user("missing") is False
    assert board.cascade.delete_project("missing") is False
    assert len(board.tasks.list_all()) == 2


def test_no_dangling_references_after_deletes(board, seeded):
    board.cascade.delete_category(seeded["design"].id)
    board.cascade.delete_tag(seeded["a"].id)
    board.cascade.delete_tag(seeded["b"].id)
    board.cascade.delete_user(seeded["ada"].id)

    category_ids = board.categories.ids()
    tag_ids = board.tags.ids()
    user_ids = board.users.ids()
    for task in board.tasks.list_all():
        assert task["categoryId"] is None or task["categoryId"] in category_ids
        assert all(tag_id in tag_ids for tag_id in task["tagIds"])
        assert task["assigneeId"] is None or task["assigneeId"] in user_ids


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Events
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_subscribers_receive_delete_events(board, seeded):
    events = []
    board.cascade.subscribe("tag_deleted", lambda **kw: events.append(("tag", kw)))
    board.cascade.subscribe("project_deleted", lambda **kw: events.append(("project", kw)))

    board.cascade.delete_tag(seeded["a"].id)
    board.cascade.delete_project(seeded["task"]["projectId"])

    assert events == [
        ("tag", {"tag_id": seeded["a"].id, "tasks_changed": 1}),
        ("project", {"project_id": seeded["task"]["projectId"], "tasks_changed": 2}),
    ]


def test_failing_subscriber_does_not_break_delete(board, seeded):
    calls = []

    def broken(**kwargs):
        raise RuntimeError("boom")

    board.cascade.subscribe("user_deleted", broken)
    board.cascade.subscribe("user_deleted", lambda **kw: calls.append(kw["user_id"]))

    assert board.cascade.delete_user(seeded["ada"].id) is True
    assert calls == [seeded["ada"].id]
    assert board.tasks.get(seeded["task"]["id"])["assigneeId"] is None


def test_no_event_when_owner_missing(board):
    events = []
    board.cascade.subscribe("category_deleted", lambda **kw: events.append(kw))
    board.cascade.delete_category("missing")
    assert events == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Column changes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_removed_column_moves_tasks_to_first_column(board, project):
    waiting = board.tasks.create(project.id, {"title": "Waiting"})
    first = board.tasks.create(project.id, {"title": "First", "status": "in_progress"})
    second = board.tasks.create(project.id, {"title": "Second", "status": "in_progress"})
    finished = board.tasks.create(project.id, {"title": "Finished", "status": "done"})

    board.cascade.update_project(project.id, {"columns": [
        {"status": "assigned", "title": "Assigned"},
        {"status": "done", "title": "Done"},
    ]})

    statuses = board.projects.get(project.id).statuses
    for task in board.tasks.list_by_project(project.id):
        assert task["status"] in statuses
    moved = [board.tasks.get(t["id"]) for t in (first, second)]
    assert [(t["status"], t["position"]) for t in moved] == [("assigned", 1), ("assigned", 2)]
    assert board.tasks.get(waiting["id"])["position"] == 0
    assert board.tasks.get(finished["id"])["status"] == "done"


def test_column_change_event(board, project):
    task = board.tasks.create(project.id, {"title": "x", "status": "in_progress"})
    events = []
    board.cascade.subscribe("project_columns_changed", lambda **kw: events.append(kw))

    board.cascade.update_project(project.id, {"name": "Renamed"})
    board.cascade.update_project(project.id, {"columns": [
        {"status": "in_progress", "title": "Doing"},
        {"status": "done", "title": "Done"},
    ]})
    assert events == []
    assert board.tasks.get(task["id"])["status"] == "in_progress"

    board.cascade.update_project(project.id, {"columns": [{"status": "done", "title": "Done"}]})
    assert events == [{"project_id": project.id, "tasks_changed": 1}]
    assert board.tasks.get(task["id"])["status"] == "done"
