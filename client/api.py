"""Thin httpx wrapper around the Taskboard REST API."""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiRequestError(Exception):
    """A non-2xx response, carrying the server's error envelope."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")

    @property
    def is_validation(self) -> bool:
        return bool(self.errors)


class ApiClient:
    """Calls the API with the current bearer token.

    ``token_getter`` is consulted on every request so the session provider
    stays the only owner of the token. ``on_unauthorized`` fires on any 401
    from an authenticated call.
    """

    def __init__(
        self,
        http: Optional[httpx.Client] = None,
        base_url: str = "http://localhost:8000",
        prefix: str = "/api",
        token_getter: Callable[[], Optional[str]] = lambda: None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        timeout: float = 10.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.prefix = prefix
        self.token_getter = token_getter
        self.on_unauthorized = on_unauthorized

    def close(self) -> None:
        self.http.close()

    # -- transport --

    def _request(self, method: str, path: str, *, auth: bool = True, **kwargs: Any) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        token = self.token_getter() if auth else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = self.http.request(method, f"{self.prefix}{path}", headers=headers, **kwargs)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_success:
            return data
        if response.status_code == 401 and auth and self.on_unauthorized is not None:
            self.on_unauthorized()
        message = data.get("error") if isinstance(data, dict) else None
        errors = data.get("errors") if isinstance(data, dict) else None
        if not message and errors:
            message = ", ".join(e.get("message", "") for e in errors)
        raise ApiRequestError(response.status_code, message or response.reason_phrase, errors)

    # -- auth --

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", auth=False,
                             json={"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", auth=False, json={"email": email, "password": password})

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")["user"]

    # -- profile --

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/users/profile")["user"]

    def update_profile(self, **fields: Any) -> Dict[str, Any]:
        return self._request("PUT", "/users/profile", json=fields)["user"]

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request("PUT", "/users/password",
                      json={"currentPassword": current_password, "newPassword": new_password})

    # -- tasks --

    def list_tasks(self, **params: Any) -> Dict[str, Any]:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        return self._request("GET", "/tasks", params=params)

    def create_task(self, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", "/tasks", json=fields)["task"]

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")["task"]

    def update_task(self, task_id: str, **fields: Any) -> Dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json=fields)["task"]

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def stats(self) -> Dict[str, Any]:
        data = self._request("GET", "/tasks/stats/summary")
        return {"summary": data["summary"], "priority": data["priority"]}
