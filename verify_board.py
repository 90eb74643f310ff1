#!/usr/bin/env python3
"""
Quick verification that the task board engine works end-to-end.
"""
import tempfile
from pathlib import Path

from taskboard.board import TaskBoard
from taskboard.config import Config


def main():
    print("=" * 60)
    print("Task Board Verification")
    print("=" * 60)

    db_path = Path(tempfile.mkdtemp()) / "verify_board.db"

    print("\n[1/6] Opening board...")
    board = TaskBoard.open(Config(db_path=str(db_path)))
    print(f"✅ Board ready, seeded users: {[u.email for u in board.users.list()]}")

    print("\n[2/6] Creating reference data...")
    design = board.categories.create({"name": "Design", "color": "#ff8800"})
    urgent = board.tags.create({"name": "urgent"})
    backend = board.tags.create({"name": "backend"})
    lead = board.users.list()[0]
    print(f"✅ Category {design.name}, tags {urgent.name}/{backend.name}")

    print("\n[3/6] Creating project and tasks...")
    project = board.projects.create({"name": "Website relaunch", "categoryIds": [design.id]})
    print(f"   Columns: {[c.status for c in project.columns]}")
    first = board.tasks.create(project.id, {
        "title": "Design onboarding flow",
        "categoryId": design.id,
        "tagIds": [urgent.id, backend.id],
        "assigneeId": lead.id,
        "priority": "high",
    })
    second = board.tasks.create(project.id, {"title": "Write copy"})
    print(f"✅ Tasks at positions {first['position']} and {second['position']}")

    print("\n[4/6] Moving a task to done...")
    moved = board.tasks.reorder(project.id, [{"id": first["id"], "status": "done", "position": 0}])
    print(f"   → {moved[0]['title']}: {moved[0]['status']}")

    print("\n[5/6] Deleting a tag and checking the cascade...")
    board.cascade.delete_tag(urgent.id)
    refreshed = board.tasks.get(first["id"])
    print(f"   → tags now: {[t['name'] for t in refreshed['tags']]}")
    assert urgent.id not in refreshed["tagIds"]

    print("\n[6/6] Searching the dashboard...")
    hits = board.tasks.list_all(search="onboard")
    print(f"   → {len(hits)} hit(s): {[t['title'] for t in hits]}")

    board.cascade.delete_project(project.id)
    assert board.tasks.list_by_project(project.id) == []

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED")
    print("=" * 60)
    print(f"Test database: {db_path}")


if __name__ == "__main__":
    main()
