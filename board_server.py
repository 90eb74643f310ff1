#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the task board engine (projects, workflow columns, tasks,
categories, tags, users), backed by a SQLite collection store.

Usage:
    python board_server.py
    python board_server.py --host 0.0.0.0 --port 5000 --db /var/lib/taskboard/board.db

API:
    GET    /api/{categories,tags,users,projects}        → list
    POST   /api/{categories,tags,users,projects}        → create
    PUT    /api/{categories,tags,users,projects}/<id>   → update
    DELETE /api/{categories,tags,users,projects}/<id>   → delete (+ task cascade)
    GET    /api/users/<id>                              → single user
    GET    /api/projects/<id>                           → { project, tasks }
    GET    /api/projects/<id>/tasks                     → tasks of a project
    POST   /api/projects/<id>/tasks                     → create task
    PATCH  /api/projects/<id>/tasks/reorder             → { updates: [{id, status?, position?}] }
    GET    /api/tasks?projectId=&categoryId=&tagId=&status=&priority=&assigneeId=&search=
    GET    /api/tasks/<id>                              → single task
    PUT    /api/tasks/<id>                              → update task
    DELETE /api/tasks/<id>                              → delete task

Errors come back as { message } with 400 (validation / bad body),
404 (not found) or 500 (unexpected).
"""

import json
import logging
import sys

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from taskboard.board import TaskBoard
from taskboard.config import Config
from taskboard.errors import MalformedRequest, NotFound, ValidationError

logger = logging.getLogger("board_server")

api = Blueprint("api", __name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS",
}

TASK_FILTERS = {
    "projectId": "project_id",
    "categoryId": "category_id",
    "tagId": "tag_id",
    "status": "status",
    "priority": "priority",
    "assigneeId": "assignee_id",
    "search": "search",
}


# ── Helpers ──────────────────────────────────────────────────────────────────

def get_board() -> TaskBoard:
    return current_app.extensions["taskboard"]


def read_body() -> dict:
    """Parse the JSON request body. Empty bodies read as {}."""
    limit = current_app.config["MAX_CONTENT_LENGTH"]
    if request.content_length is not None and request.content_length > limit:
        raise MalformedRequest("Request body too large")
    raw = request.get_data(cache=True)
    if len(raw) > limit:
        raise MalformedRequest("Request body too large")
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        raise MalformedRequest("Invalid JSON payload")
    if not isinstance(data, dict):
        raise MalformedRequest("Request body must be a JSON object")
    return data


def message(text: str, status: int = 200):
    return jsonify({"message": text}), status


# ── Routes ───────────────────────────────────────────────────────────────────

@api.route("/")
def index():
    return jsonify({"message": "Task Manager API"})


@api.route("/api/health")
def health():
    return jsonify({"status": "ok"})


# Categories

@api.route("/api/categories", methods=["GET"])
def list_categories():
    return jsonify([c.to_dict() for c in get_board().categories.list()])


@api.route("/api/categories", methods=["POST"])
def create_category():
    category = get_board().categories.create(read_body())
    return jsonify(category.to_dict()), 201


@api.route("/api/categories/<category_id>", methods=["PUT"])
def update_category(category_id):
    category = get_board().categories.update(category_id, read_body())
    return jsonify(category.to_dict())


@api.route("/api/categories/<category_id>", methods=["DELETE"])
def delete_category(category_id):
    if not get_board().cascade.delete_category(category_id):
        return message("Category not found", 404)
    return message("Category deleted")


# Tags

@api.route("/api/tags", methods=["GET"])
def list_tags():
    return jsonify([t.to_dict() for t in get_board().tags.list()])


@api.route("/api/tags", methods=["POST"])
def create_tag():
    tag = get_board().tags.create(read_body())
    return jsonify(tag.to_dict()), 201


@api.route("/api/tags/<tag_id>", methods=["PUT"])
def update_tag(tag_id):
    tag = get_board().tags.update(tag_id, read_body())
    return jsonify(tag.to_dict())


@api.route("/api/tags/<tag_id>", methods=["DELETE"])
def delete_tag(tag_id):
    if not get_board().cascade.delete_tag(tag_id):
        return message("Tag not found", 404)
    return message("Tag deleted")


# Users

@api.route("/api/users", methods=["GET"])
def list_users():
    return jsonify([u.to_dict() for u in get_board().users.list()])


@api.route("/api/users", methods=["POST"])
def create_user():
    user = get_board().users.create(read_body())
    return jsonify(user.to_dict()), 201


@api.route("/api/users/<user_id>", methods=["GET"])
def get_user(user_id):
    user = get_board().users.get(user_id)
    if user is None:
        return message("User not found", 404)
    return jsonify(user.to_dict())


@api.route("/api/users/<user_id>", methods=["PUT"])
def update_user(user_id):
    user = get_board().users.update(user_id, read_body())
    return jsonify(user.to_dict())


@api.route("/api/users/<user_id>", methods=["DELETE"])
def delete_user(user_id):
    if not get_board().cascade.delete_user(user_id):
        return message("User not found", 404)
    return message("User deleted")


# Projects

@api.route("/api/projects", methods=["GET"])
def list_projects():
    return jsonify([p.to_dict() for p in get_board().projects.list()])


@api.route("/api/projects", methods=["POST"])
def create_project():
    project = get_board().projects.create(read_body())
    return jsonify(project.to_dict()), 201


@api.route("/api/projects/<project_id>", methods=["GET"])
def get_project(project_id):
    board = get_board()
    project = board.projects.get(project_id)
    if project is None:
        return message("Project not found", 404)
    return jsonify({
        "project": project.to_dict(),
        "tasks": board.tasks.list_by_project(project_id),
    })


@api.route("/api/projects/<project_id>", methods=["PUT"])
def update_project(project_id):
    project = get_board().cascade.update_project(project_id, read_body())
    return jsonify(project.to_dict())


@api.route("/api/projects/<project_id>", methods=["DELETE"])
def delete_project(project_id):
    if not get_board().cascade.delete_project(project_id):
        return message("Project not found", 404)
    return message("Project deleted")


@api.route("/api/projects/<project_id>/tasks", methods=["GET"])
def list_project_tasks(project_id):
    return jsonify(get_board().tasks.list_by_project(project_id))


@api.route("/api/projects/<project_id>/tasks", methods=["POST"])
def create_task(project_id):
    task = get_board().tasks.create(project_id, read_body())
    return jsonify(task), 201


@api.route("/api/projects/<project_id>/tasks/reorder", methods=["PATCH"])
def reorder_tasks(project_id):
    payload = read_body()
    updates = payload.get("updates")
    if updates is None:
        updates = []
    return jsonify(get_board().tasks.reorder(project_id, updates))


# Tasks

@api.route("/api/tasks", methods=["GET"])
def list_tasks():
    filters = {
        kwarg: request.args.get(param) or None
        for param, kwarg in TASK_FILTERS.items()
    }
    return jsonify(get_board().tasks.list_all(**filters))


@api.route("/api/tasks/<task_id>", methods=["GET"])
def get_task(task_id):
    task = get_board().tasks.get(task_id)
    if task is None:
        return message("Task not found", 404)
    return jsonify(task)


@api.route("/api/tasks/<task_id>", methods=["PUT"])
def update_task(task_id):
    return jsonify(get_board().tasks.update(task_id, read_body()))


@api.route("/api/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    if not get_board().tasks.delete(task_id):
        return message("Task not found", 404)
    return message("Task deleted")


# ── App factory ──────────────────────────────────────────────────────────────

def create_app(config: Config = None, board: TaskBoard = None) -> Flask:
    """Build the Flask app around an initialized TaskBoard."""
    if board is None:
        board = TaskBoard.open(config or Config.load())
    else:
        board.initialize()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = board.config.max_body_bytes
    app.extensions["taskboard"] = board
    app.register_blueprint(api)

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return "", 204

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(ValidationError)
    @app.errorhandler(MalformedRequest)
    def bad_request(e):
        return message(e.message, 400)

    @app.errorhandler(NotFound)
    def not_found(e):
        return message(e.message, 404)

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code in (404, 405):
            return message("Route not found", 404)
        if e.code == 413:
            return message("Request body too large", 400)
        return message(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def unexpected(e):
        app.logger.exception(f"Unhandled error on {request.method} {request.path}")
        return message("Unexpected server error", 500)

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to board.db (overrides TASKBOARD_DB env var)")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args()

    cfg = Config.load(args.config)
    if args.db:
        cfg.db_path = args.db
        cfg.resolve_paths()
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = create_app(cfg)
    logger.info(f"Task board listening on http://{cfg.host}:{cfg.port} (db={cfg.db_path})")
    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=True)
