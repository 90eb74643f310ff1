"""
Tests for the requests-based API client, with the HTTP session mocked out.
"""
from unittest.mock import MagicMock

import pytest

from taskboard.client import BoardAPIError, BoardClient


def make_response(status=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.content = b"x" if payload is not None else b""
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def api(session):
    return BoardClient("http://board.local/api/", timeout=3, session=session)


def test_sets_json_content_type(api, session):
    assert session.headers["Content-Type"] == "application/json"


def test_list_projects(api, session):
    session.request.return_value = make_response(payload=[{"id": "p1"}])
    assert api.list_projects() == [{"id": "p1"}]
    session.request.assert_called_once_with("GET", "http://board.local/api/projects", timeout=3)


def test_create_task_posts_json(api, session):
    session.request.return_value = make_response(201, payload={"id": "t1"})
    assert api.create_task("p1", {"title": "x"}) == {"id": "t1"}
    session.request.assert_called_once_with(
        "POST", "http://board.local/api/projects/p1/tasks", timeout=3, json={"title": "x"}
    )


def test_reorder_wraps_updates(api, session):
    session.request.return_value = make_response(payload=[])
    api.reorder_tasks("p1", [{"id": "t1", "position": 0}])
    session.request.assert_called_once_with(
        "PATCH",
        "http://board.local/api/projects/p1/tasks/reorder",
        timeout=3,
        json={"updates": [{"id": "t1", "position": 0}]},
    )


def test_dashboard_drops_empty_filters(api, session):
    session.request.return_value = make_response(payload=[])
    api.dashboard_tasks(projectId="p1", search="", tagId=None)
    session.request.assert_called_once_with(
        "GET", "http://board.local/api/tasks", timeout=3, params={"projectId": "p1"}
    )


def test_error_carries_server_message(api, session):
    session.request.return_value = make_response(400, payload={"message": "Title is required"})
    with pytest.raises(BoardAPIError) as excinfo:
        api.create_task("p1", {})
    assert excinfo.value.status == 400
    assert excinfo.value.message == "Title is required"


def test_error_without_json_body_uses_text(api, session):
    session.request.return_value = make_response(502, text="Bad Gateway")
    with pytest.raises(BoardAPIError) as excinfo:
        api.list_tags()
    assert excinfo.value.status == 502
    assert excinfo.value.message == "Bad Gateway"


def test_against_flask_app(client):
    """Drive the real app through the client by adapting the Flask test client."""

    class FlaskSession:
        headers = {}

        def request(self, method, url, timeout=None, json=None, params=None):
            path = url.replace("http://testserver/api", "/api")
            r = client.open(path, method=method, json=json, query_string=params)
            response = MagicMock()
            response.status_code = r.status_code
            response.ok = r.status_code < 400
            response.content = r.data
            response.text = r.get_data(as_text=True)
            response.json.side_effect = lambda: r.get_json()
            return response

    api = BoardClient("http://testserver/api", session=FlaskSession())
    project = api.create_project({"name": "Website"})
    task = api.create_task(project["id"], {"title": "One"})
    moved = api.reorder_tasks(project["id"], [{"id": task["id"], "status": "done"}])
    assert moved[0]["status"] == "done"
    assert api.project_detail(project["id"])["tasks"][0]["status"] == "done"
    assert api.delete_project(project["id"]) == {"message": "Project deleted"}

    with pytest.raises(BoardAPIError) as excinfo:
        api.project_detail(project["id"])
    assert excinfo.value.status == 404
