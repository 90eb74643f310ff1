"""
HTTP client for the task board API.

One method per endpoint. Non-2xx answers raise BoardAPIError carrying the
server's `message`; transport failures propagate as requests exceptions.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

DEFAULT_URL = "http://localhost:5000/api"


class BoardAPIError(Exception):
    """Non-2xx answer from the board API."""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class BoardClient:
    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        r = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        if not r.ok:
            try:
                body = r.json()
            except ValueError:
                body = None
            text = (body.get("message") if isinstance(body, dict) else None) or r.text
            raise BoardAPIError(r.status_code, text)
        return r.json() if r.content else None

    # ---------- projects ----------
    def list_projects(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/projects")

    def project_detail(self, project_id: str) -> Dict[str, Any]:
        """{project, tasks} for one project."""
        return self._request("GET", f"/projects/{project_id}")

    def create_project(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/projects", json=payload)

    def update_project(self, project_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/projects/{project_id}", json=payload)

    def delete_project(self, project_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/projects/{project_id}")

    # ---------- categories ----------
    def list_categories(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/categories")

    def create_category(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/categories", json=payload)

    def update_category(self, category_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/categories/{category_id}", json=payload)

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/categories/{category_id}")

    # ---------- tags ----------
    def list_tags(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tags")

    def create_tag(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/tags", json=payload)

    def update_tag(self, tag_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/tags/{tag_id}", json=payload)

    def delete_tag(self, tag_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/tags/{tag_id}")

    # ---------- users ----------
    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/users")

    def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/users", json=payload)

    def update_user(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/users/{user_id}", json=payload)

    def delete_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/users/{user_id}")

    # ---------- tasks ----------
    def dashboard_tasks(self, **filters) -> List[Dict[str, Any]]:
        """Filtered cross-project listing; pass projectId=, tagId=, search=, ..."""
        params = {k: v for k, v in filters.items() if v}
        return self._request("GET", "/tasks", params=params)

    def create_task(self, project_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/projects/{project_id}/tasks", json=payload)

    def update_task(self, task_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json=payload)

    def delete_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/tasks/{task_id}")

    def reorder_tasks(self, project_id: str, updates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return self._request("PATCH", f"/projects/{project_id}/tasks/reorder", json={"updates": updates})
